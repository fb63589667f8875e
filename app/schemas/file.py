# app/schemas/file.py
from app.schemas.base import CamelModel


class FileUploadResponse(CamelModel):
    message: str
    url: str
    public_id: str
    content_type: str
    size: int
