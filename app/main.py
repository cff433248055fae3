import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import activities, admin, awards, departments, faculty, health, publications, reports
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.connection import Database
from app.reports.institute_reports import new_report_limiter

# --- Setup logging FIRST --- #
setup_logging()
logger = logging.getLogger(__name__) # Get logger after setup
logger.info("Logging configured.")
# ------------------------ #

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifespan: Starting up Institute Management API")
    database = Database(settings.DATABASE_URL)
    await database.connect()
    app.state.database = database
    app.state.report_limiter = new_report_limiter()

    if settings.VALIDATE_SCHEMA_ON_STARTUP:
        logger.info("Lifespan: Validating database schema definitions")
        await database.validate_schema_definitions()

    logger.info("Lifespan: Application startup tasks complete.")
    yield

    logger.info("Lifespan: Shutting down Institute Management API")
    await database.dispose()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Institute Management API - departments, faculty records and NAAC/NBA reports",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# --- Error envelope --- #
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form"))
    message = f"Invalid or missing field '{field}': {first.get('msg', 'invalid value')}" if field else "Invalid request"
    logger.warning(f"Request validation failed on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"success": False, "message": message})
# ---------------------- #

# Certificates are served from the uploads directory
app.mount(settings.UPLOAD_URL_BASE, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers; the fixed /faculty/* paths must precede /faculty/{faculty_id}
app.include_router(admin.router, prefix=settings.API_PREFIX, tags=["admin"])
app.include_router(departments.router, prefix=settings.API_PREFIX, tags=["departments"])
app.include_router(publications.router, prefix=settings.API_PREFIX, tags=["publications"])
app.include_router(awards.router, prefix=settings.API_PREFIX, tags=["awards"])
app.include_router(activities.router, prefix=settings.API_PREFIX, tags=["activities"])
app.include_router(reports.router, prefix=settings.API_PREFIX, tags=["reports"])
app.include_router(faculty.router, prefix=settings.API_PREFIX, tags=["faculty"])
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])

logger.info("FastAPI app created and configured.")

if __name__ == "__main__":
    # Ensure logging is setup before uvicorn potentially takes over
    logger.info(f"Starting Uvicorn server. Host=0.0.0.0, Port=8000, Reload={settings.DEBUG}")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(), # Use level from settings
    )
