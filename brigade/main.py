import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brigade.core.abuse_guard import AbuseGuard
from brigade.core.config import (
    CORS_ORIGINS,
    DATABASE_URL,
    DEBUG_ERRORS,
    SUPER_ADMIN_BOOTSTRAP,
    SUPER_ADMIN_EMAIL,
    SUPER_ADMIN_NAME,
    SUPER_ADMIN_PASSWORD,
)
from brigade.core.database import Base, SessionLocal, engine
from brigade.core.errors import ApiError
from brigade.core.logging_setup import configure_logging
from brigade.core.startup_checks import ensure_migrations_applied, validate_database_environment, validate_secrets
from brigade.middleware.observability import ObservabilityMiddleware
import brigade.models  # registers every model before create_all

from brigade.routers.admin import router as admin_router
from brigade.routers.auth import router as auth_router
from brigade.routers.chefs import router as chefs_router
from brigade.routers.internal_metrics import router as internal_metrics_router
from brigade.routers.restaurants import router as restaurants_router
from brigade.routers.team import router as team_router
from brigade.routers.users import router as users_router
from brigade.services.bootstrap import BOOTSTRAP_PREFIX, upsert_super_admin

configure_logging()

logger = logging.getLogger(__name__)
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini")))
SERVER_ERROR_MESSAGE = "Server error. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    _startup_tasks()
    app.state.abuse_guard = AbuseGuard()
    yield


app = FastAPI(
    title="Brigade API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)
app.state.abuse_guard = AbuseGuard()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(ApiError)
async def api_error_handler(_request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_content()),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "error": "validation_error", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": SERVER_ERROR_MESSAGE, "error": "server_error"}
    if DEBUG_ERRORS:
        content["debug"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=content)


def _bootstrap_super_admin() -> None:
    if not SUPER_ADMIN_BOOTSTRAP:
        logger.info("%s disabled via SUPER_ADMIN_BOOTSTRAP", BOOTSTRAP_PREFIX)
        return
    if not SUPER_ADMIN_EMAIL or not SUPER_ADMIN_PASSWORD:
        logger.info("%s skipped: configure SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD", BOOTSTRAP_PREFIX)
        return

    db = SessionLocal()
    try:
        upsert_super_admin(db, email=SUPER_ADMIN_EMAIL, name=SUPER_ADMIN_NAME, password=SUPER_ADMIN_PASSWORD)
    except Exception:
        logger.exception("%s ERROR bootstrap failed", BOOTSTRAP_PREFIX)
        raise
    finally:
        db.close()


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_secrets()
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
        _bootstrap_super_admin()
    except Exception:
        logger.exception("[STARTUP] ERROR startup failed")
        raise


# Routers
app.include_router(auth_router)
app.include_router(chefs_router)
app.include_router(team_router)
app.include_router(users_router)
app.include_router(restaurants_router)
app.include_router(admin_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
