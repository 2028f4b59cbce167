import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_visit,  # noqa: F401
)
from .config import ALLOWED_ORIGINS
from .database import Base, engine
from .domain.customers import router as customers_router
from .domain.scheduling import router as scheduling_router
from .domain.visits import router as visits_router
from .routes.geocoding import router as geocoding_router
from .shared.exceptions import FieldRouteError, ValidationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="FieldRoute API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(FieldRouteError)
async def field_route_exception_handler(request: Request, exc: FieldRouteError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.error_code}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} - {exc.error_code}: {exc.message}")

    content = {"detail": exc.message, "code": exc.error_code}
    if exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Domain validation raised inside request models answers 400 like the
    service layer does; other malformed bodies keep the default 422.
    """
    for error in exc.errors():
        cause = (error.get("ctx") or {}).get("error")
        if isinstance(cause, ValidationError):
            logger.warning(f"Validation error for {request.url.path}: {cause.message}")
            content = {"detail": cause.message, "code": cause.error_code}
            if cause.field:
                content["field"] = cause.field
            return JSONResponse(status_code=cause.status_code, content=content)

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "code": "VALIDATION_ERROR"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# Log CORS configuration for debugging
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(customers_router)
app.include_router(scheduling_router)
app.include_router(visits_router)
app.include_router(geocoding_router)


@app.get("/")
def root():
    return {"message": "FieldRoute API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
