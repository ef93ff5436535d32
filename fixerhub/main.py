import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

# Model modules register their tables on Base.metadata
from . import (
    models,  # noqa: F401
    models_certification,  # noqa: F401
    models_dispute,  # noqa: F401
    models_payment,  # noqa: F401
)
from .config import ALLOWED_ORIGINS, UPLOAD_DIR
from .database import Base, engine
from .domain.bookings.router import router as bookings_router
from .domain.certifications.router import router as certifications_router
from .domain.chat.router import router as chat_router
from .domain.disputes.router import router as disputes_router
from .domain.payments.router import router as payments_router
from .domain.reviews.router import router as reviews_router
from .domain.users.router import router as users_router
from .errors import FixerHubError
from .storage import ensure_upload_dirs

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Quiet client libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("stripe").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 FixerHub API starting up")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Database schema ready")
    except Exception as e:
        # Another worker may have won the CREATE TABLE race
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("ℹ️ Tables were created concurrently by another worker")
        else:
            logger.error(f"❌ Could not create database tables: {e}")
            raise

    ensure_upload_dirs()
    yield
    logger.info("👋 FixerHub API shutting down")


app = FastAPI(title="FixerHub API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(FixerHubError)
async def fixerhub_exception_handler(request: Request, exc: FixerHubError):
    """Map domain errors raised below the HTTP layer onto their status codes"""
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A bad or missing Authorization header is an auth failure, not a 422"""
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"🔒 Rejected {request.url.path}: Authorization header missing or malformed"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"⚠️ Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raised ValueError, which JSONResponse cannot encode
    return [{k: (str(v) if k == "ctx" else v) for k, v in error.items()} for error in exc.errors()]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise
    elapsed = time.time() - started
    if elapsed > 2.0:
        logger.warning(f"🐌 {request.method} {request.url.path} took {elapsed:.2f}s")
    return response


logger.info(f"🌐 CORS origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(users_router)
app.include_router(bookings_router)
app.include_router(payments_router)
app.include_router(reviews_router)
app.include_router(certifications_router)
app.include_router(disputes_router)
app.include_router(chat_router)

# Stored uploads are served back by their relative path
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
def root():
    return {"message": "FixerHub API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
