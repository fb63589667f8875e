# app/api/v1/files.py
from fastapi import APIRouter, File, UploadFile, Depends, Query
from app.core.dependencies import require_admin
from app.services.file_service import FileService
from app.schemas.file import FileUploadResponse

router = APIRouter()

@router.post("/upload", response_model=FileUploadResponse)
async def upload_file(
    folder: str = Query("images", pattern="^(images|files)$"),
    file: UploadFile = File(...),
    _=Depends(require_admin),
):
    svc = FileService()
    return await svc.handle_file_upload(file, folder=folder)
