# app/services/file_service.py
import logging
import uuid
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile

from app.core.config import settings
from app.utils import s3

logger = logging.getLogger(__name__)

FOLDERS = ("images", "files")


class FileService:
    async def handle_file_upload(self, uploaded_file: UploadFile, folder: str = "images"):
        # -------------------
        # Validation
        # -------------------
        if folder not in FOLDERS:
            raise HTTPException(status_code=400, detail=f"Unknown folder: {folder}")

        content_type = uploaded_file.content_type
        data = await uploaded_file.read()
        size = len(data)

        if size == 0:
            raise HTTPException(status_code=400, detail="Empty file")

        if size > settings.MAX_UPLOAD_SIZE_BYTES:
            raise HTTPException(status_code=413, detail="File too large")

        if settings.ALLOWED_UPLOAD_TYPES and content_type not in settings.ALLOWED_UPLOAD_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported file type: {content_type}")

        # -------------------
        # Push to object storage
        # -------------------
        ext = Path(uploaded_file.filename or "").suffix.lower()
        key = f"{folder}/{uuid.uuid4().hex}{ext}"

        try:
            s3.upload_bytes_to_s3(key, data, content_type)
        except RuntimeError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        except (BotoCoreError, ClientError) as exc:
            logger.error("Upload of %s failed: %s", key, exc)
            raise HTTPException(status_code=502, detail="Upload to object storage failed")

        logger.info("Uploaded %s (%d bytes)", key, size)
        return {
            "message": "File uploaded successfully",
            "url": s3.public_url(key),
            "public_id": key,
            "content_type": content_type,
            "size": size,
        }
