"""
PrintERP Ledger API - Main entry point.

Double-entry general ledger for the PrintERP production system:

- Chart of accounts with running balances
- Financial periods that gate postings
- Journal entries and the posting engine
- Trial balance, income statement and budget vs actual reports
- Budgets, cash transactions and receivable payments

Endpoints are served under /api/v1/finance/.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from printerp.core.config import settings
from printerp.core.errors import LedgerError, PersistenceError, ValidationError
from printerp.core.logging import configure_logging
from printerp.db.base import init_db
from printerp.schemas.common import HealthResponse
from printerp.api.v1.finance import finance_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging(settings.LOG_LEVEL)
    # Note: In production, use Alembic migrations instead
    await init_db()
    logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="""
PrintERP Ledger - double-entry accounting for a printing/production ERP.

## Modules

- **Accounts**: Chart of accounts
- **Periods**: Financial periods (open/closed)
- **Journal Entries**: Draft, post and cancel balanced entries
- **Reports**: Trial balance, income statement, budget vs actual
- **Budgets**: Budgets and departments
- **Cash / Receivables**: Cash transactions and order payments
    """,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(code=200, message="API is healthy.")


# ============================================================================
# API V1
# ============================================================================

# Finance module - /api/v1/finance/*
app.include_router(
    finance_router,
    prefix=settings.API_V1_PREFIX,
)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    """Typed ledger errors carry their own status and code."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads and query parameters are reported as VALIDATION_ERROR."""
    error = ValidationError(
        "Invalid request data",
        details={"errors": [
            {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
            for e in exc.errors()
        ]},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_dict())


@app.exception_handler(SQLAlchemyError)
async def persistence_exception_handler(request: Request, exc: SQLAlchemyError):
    """Store failures are logged with context and returned without internals."""
    logger.exception(f"Persistence failure on {request.method} {request.url.path}")
    error = PersistenceError("A database error occurred")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "code": "INTERNAL_ERROR"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "printerp.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
