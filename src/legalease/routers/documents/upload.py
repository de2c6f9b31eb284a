"""
Documents Upload - file upload and text extraction
"""
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, UploadFile, File, Form, Depends

from ...config import settings
from ...dependencies import get_document_service, get_storage
from ...errors import ValidationFailed
from ...services.documents import DocumentService
from ...services.storage import ObjectStorage
from ...services.text_extraction import (
    ALLOWED_EXTENSIONS, extract_text, get_file_extension, storage_key,
)

logger = structlog.get_logger()
router = APIRouter()


@router.post("/upload")
async def upload_document(
    file: Optional[UploadFile] = File(default=None),
    user_id: Optional[UUID] = Form(default=None, alias="userId"),
    title: Optional[str] = Form(default=None),
    documents: DocumentService = Depends(get_document_service),
    storage: ObjectStorage = Depends(get_storage),
):
    """
    Upload a PDF, DOCX, DOC or TXT file and extract its text.

    Size and type are checked before anything is written. The stored object
    is removed again when the document row cannot be inserted.
    """
    if file is None or not user_id:
        raise ValidationFailed("Missing file or userId")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationFailed("File too large",
                               maxBytes=settings.MAX_UPLOAD_BYTES, size=len(content))

    file_type = get_file_extension(file.filename)
    if file_type not in ALLOWED_EXTENSIONS:
        raise ValidationFailed("Invalid file type", allowed=sorted(ALLOWED_EXTENSIONS))

    extracted = await extract_text(content, file_type, timeout=settings.EXTRACTION_TIMEOUT_SECONDS)

    key = storage_key(str(user_id), file.filename)
    await storage.upload_bytes(settings.DOCUMENTS_BUCKET, key, content,
                               mime_type=file.content_type or "application/octet-stream")

    try:
        document = await documents.create_document(
            str(user_id),
            title or file.filename,
            extracted.text,
            status="pending",
            original_file=key,
            file_type=file_type,
            word_count=extracted.word_count,
            metadata={
                "originalFileName": file.filename,
                "fileSize": len(content),
                "mimeType": file.content_type,
                **{k: v for k, v in extracted.metadata.items() if v is not None},
            },
        )
    except Exception:
        logger.warning("Document insert failed, removing stored file", key=key)
        await storage.delete_objects(settings.DOCUMENTS_BUCKET, [key])
        raise

    logger.info("Document uploaded",
                document_id=str(document["id"]),
                user_id=str(user_id),
                file_type=file_type,
                size=len(content))

    return {
        "success": True,
        "document": document,
        "extractedText": extracted.text,
        "wordCount": extracted.word_count,
        "characterCount": extracted.character_count,
    }
