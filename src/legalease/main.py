"""
LegalEase API - Main Application
Legal/plain language conversion, document management and approvals
"""
from datetime import datetime
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .routers import (
    approvals, archive, branding, convert, credits, documents, organizations,
    reports, search, teams, templates, workflows,
)
from .database import init_database, close_database
from .dependencies import create_http_client, create_storage
from .errors import (
    LegalEaseError, legalease_error_handler, request_validation_handler, global_exception_handler,
)
from .config import settings

# Configure logging
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ]
)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting LegalEase API",
                environment=settings.ENVIRONMENT,
                llm_provider=settings.LLM_PROVIDER,
                llm_model=settings.LLM_MODEL)

    # Initialize database
    await init_database()

    # Shared clients
    app.state.http_client = create_http_client()
    app.state.storage = create_storage()

    logger.info("LegalEase API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down LegalEase API")
    await app.state.http_client.aclose()
    await close_database()


# OpenAPI Tags
openapi_tags = [
    {"name": "Conversion", "description": "Legal to plain and plain to legal conversion"},
    {"name": "Credits", "description": "Credit balance, history and top-ups"},
    {"name": "Documents", "description": "Upload, text extraction, documents and versions"},
    {"name": "Archive", "description": "Archive and recall documents"},
    {"name": "Search", "description": "Filtered document search"},
    {"name": "Workflows", "description": "Approval workflows and their steps"},
    {"name": "Approvals", "description": "Per-step approval decisions"},
    {"name": "Organizations", "description": "Organizations and members"},
    {"name": "Teams", "description": "Teams and team members"},
    {"name": "Templates", "description": "Document templates"},
    {"name": "Branding", "description": "Logo uploads"},
    {"name": "Reports", "description": "Analytics"},
]

# Create FastAPI app
app = FastAPI(
    title="LegalEase AI - API",
    description="""
## LegalEase AI

Converts legal documents into plain language (and back) with a language
model, charging prepaid credits per conversion.

| Module | Description |
|--------|-------------|
| **Conversion** | `POST /convert`, balance checked before the model is called |
| **Documents** | Upload PDF/DOCX/TXT, extracted text, versions |
| **Approvals** | Multi-step workflows with terminal per-step decisions |
| **Organizations** | Organizations, teams and members |
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=openapi_tags,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handlers
app.add_exception_handler(LegalEaseError, legalease_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, global_exception_handler)


# Include routers
app.include_router(convert.router, prefix="/convert", tags=["Conversion"])
app.include_router(credits.router, prefix="/credits", tags=["Credits"])
app.include_router(documents.router, tags=["Documents"])
app.include_router(archive.router, prefix="/archive", tags=["Archive"])
app.include_router(search.router, prefix="/search", tags=["Search"])
app.include_router(workflows.router, prefix="/workflows", tags=["Workflows"])
app.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])
app.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
app.include_router(teams.router, prefix="/teams", tags=["Teams"])
app.include_router(templates.router, prefix="/templates", tags=["Templates"])
app.include_router(branding.router, prefix="/branding", tags=["Branding"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "legalease-api",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API info"""
    return {
        "name": "LegalEase AI API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
