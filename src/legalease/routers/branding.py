"""
Branding Router - organization and user logos in object storage
"""
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..dependencies import get_storage
from ..errors import ValidationFailed
from ..services.storage import ObjectStorage
from ..services.text_extraction import sanitize_filename, storage_key

logger = structlog.get_logger()
router = APIRouter()

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}


class LogoDelete(BaseModel):
    file_name: str = Field(..., alias="fileName", min_length=1)
    user_id: UUID = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True)


def logo_prefix(user_id: str) -> str:
    return f"logos/{user_id}"


@router.post("/logo")
async def upload_logo(
    logo: Optional[UploadFile] = File(default=None),
    user_id: Optional[UUID] = Form(default=None, alias="userId"),
    storage: ObjectStorage = Depends(get_storage),
):
    """Upload a logo image (at most 5 MB)"""
    if logo is None or not user_id:
        raise ValidationFailed("Missing logo or userId")

    content = await logo.read()
    if len(content) > settings.MAX_LOGO_BYTES:
        raise ValidationFailed("Logo too large (max 5MB)")

    if logo.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailed("Invalid image type", allowed=sorted(ALLOWED_IMAGE_TYPES))

    key = storage_key(logo_prefix(str(user_id)), logo.filename)
    await storage.upload_bytes(settings.BRANDING_BUCKET, key, content, mime_type=logo.content_type)

    logger.info("Logo uploaded", user_id=str(user_id), key=key, size=len(content))
    return {
        "success": True,
        "logoUrl": storage.public_url(settings.BRANDING_BUCKET, key),
        "fileName": key,
    }


@router.get("/logo")
async def list_logos(
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    storage: ObjectStorage = Depends(get_storage),
):
    if not user_id:
        raise ValidationFailed("Missing userId")

    objects = await storage.list_objects(settings.BRANDING_BUCKET, logo_prefix(str(user_id)))
    logos = [
        {
            "name": obj.name,
            "url": storage.public_url(settings.BRANDING_BUCKET, obj.key),
            "createdAt": obj.modified_at,
        }
        for obj in objects
    ]
    return {"logos": logos}


@router.delete("/logo")
async def delete_logo(body: LogoDelete, storage: ObjectStorage = Depends(get_storage)):
    """Delete one of the user's logos; ``fileName`` is the name inside the user's folder"""
    name = sanitize_filename(body.file_name.split("/")[-1])
    key = f"{logo_prefix(str(body.user_id))}/{name}"
    await storage.delete_objects(settings.BRANDING_BUCKET, [key])

    logger.info("Logo deleted", user_id=str(body.user_id), key=key)
    return {"success": True}
