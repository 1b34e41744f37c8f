"""
FastAPI application for the document-to-spreadsheet extraction service.

Provides endpoints for:
- Extracting text from uploaded PDFs
- Validating schemas and previewing their extraction contract
- Extracting schema-shaped records, one document or a batch at a time
- Exporting records as spreadsheet rows
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .models import HealthResponse
from .routers import batches, documents, export, schemas, upload
from .services.ai import AIServiceError, RecordValidationError, get_ai_service
from .services.flattening import FlatteningLimitationError
from .services.pdf_service import TextExtractionError, get_pdf_service
from .services.schema_service import SchemaError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Document Extraction Service...")
    # Initialize services on startup
    get_pdf_service()
    get_ai_service()
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Document Extraction Service...")


# Create FastAPI application
app = FastAPI(
    title="Document Extraction API",
    description="Schema-driven extraction of PDF documents into spreadsheet rows",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite development server
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy",
        message="Document Extraction API is running",
        version=__version__,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(schemas.router)
app.include_router(upload.router)
app.include_router(documents.router)
app.include_router(batches.router)
app.include_router(export.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(SchemaError)
async def schema_error_handler(request: Request, exc: SchemaError):
    """Handle structurally invalid schemas."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "path": exc.path},
    )


@app.exception_handler(TextExtractionError)
async def text_extraction_error_handler(request: Request, exc: TextExtractionError):
    """Handle PDF text extraction errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


@app.exception_handler(RecordValidationError)
async def record_validation_error_handler(request: Request, exc: RecordValidationError):
    """Handle extraction replies that do not match the schema."""
    logger.warning("Extraction reply rejected: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "path": exc.path},
    )


@app.exception_handler(FlatteningLimitationError)
async def flattening_error_handler(request: Request, exc: FlatteningLimitationError):
    """Handle records that cannot be flattened unambiguously."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


@app.exception_handler(AIServiceError)
async def ai_service_error_handler(request: Request, exc: AIServiceError):
    """Handle AI service errors."""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )
