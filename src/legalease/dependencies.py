"""
FastAPI dependencies for shared clients and per-request services.

The HTTP client and the storage client live on ``app.state`` for the
lifetime of the application (see ``main.lifespan``).
"""
import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_db
from .services.approvals import ApprovalService
from .services.conversion import ConversionService
from .services.converter import LegalTextConverter
from .services.credits import CreditService
from .services.documents import DocumentService
from .services.llm import LLMClient
from .services.storage import ObjectStorage


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS)


def create_storage() -> ObjectStorage:
    return ObjectStorage(
        credentials={
            "access_key_id": settings.STORAGE_ACCESS_KEY_ID,
            "secret_access_key": settings.STORAGE_SECRET_ACCESS_KEY,
        },
        settings={
            "endpoint_url": settings.STORAGE_ENDPOINT_URL,
            "region": settings.STORAGE_REGION,
            "public_url": settings.STORAGE_PUBLIC_URL,
        },
        timeout=settings.STORAGE_TIMEOUT_SECONDS,
    )


def get_llm_client(request: Request) -> LLMClient:
    return LLMClient(
        provider=settings.LLM_PROVIDER,
        model=settings.LLM_MODEL,
        api_key=settings.LLM_API_KEY,
        base_url=settings.LLM_BASE_URL,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        http_client=request.app.state.http_client,
    )


def get_converter(llm: LLMClient = Depends(get_llm_client)) -> LegalTextConverter:
    return LegalTextConverter(llm)


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_conversion_service(
    db: AsyncSession = Depends(get_db),
    converter: LegalTextConverter = Depends(get_converter),
) -> ConversionService:
    return ConversionService(db, converter)


def get_credit_service(db: AsyncSession = Depends(get_db)) -> CreditService:
    return CreditService(db)


def get_document_service(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


def get_approval_service(db: AsyncSession = Depends(get_db)) -> ApprovalService:
    return ApprovalService(db)
