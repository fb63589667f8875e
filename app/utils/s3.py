# app/utils/s3.py
# R2 speaks the S3 API; boto3 just needs the account endpoint
import boto3
from app.core.config import settings


def get_s3_client():
    if not (settings.R2_BUCKET_NAME and settings.R2_ENDPOINT):
        raise RuntimeError("Object storage not configured")
    return boto3.client(
        "s3",
        endpoint_url=settings.R2_ENDPOINT,
        aws_access_key_id=settings.R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        region_name="auto",
    )


def upload_bytes_to_s3(key: str, data: bytes, content_type: str = None):
    s3 = get_s3_client()
    extra = {"ContentType": content_type} if content_type else {}
    s3.put_object(Bucket=settings.R2_BUCKET_NAME, Key=key, Body=data, **extra)
    return key


def public_url(key: str) -> str:
    domain = settings.R2_PUBLIC_DOMAIN.rstrip("/")
    return f"{domain}/{key}" if domain else key
