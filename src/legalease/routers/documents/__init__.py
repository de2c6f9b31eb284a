"""
Documents Router Package

- models.py: Pydantic request models
- upload.py: file upload and text extraction (/upload)
- crud.py: list, create, read and delete (/documents)
- versions.py: version history (/documents/{id}/versions)
"""

from fastapi import APIRouter

from .upload import router as upload_router
from .crud import router as crud_router
from .versions import router as versions_router

router = APIRouter()

# Include all sub-routers (order matters for path matching)
router.include_router(upload_router)                           # /upload
router.include_router(versions_router, prefix="/documents")    # /documents/{id}/versions
router.include_router(crud_router, prefix="/documents")        # Base CRUD (/documents/{id})

__all__ = ["router"]
