"""FastAPI application entrypoint."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from secretmirror import bootstrap
from secretmirror.config import settings
from secretmirror.database import init_db
from secretmirror.errors import (
    BindingCollision,
    DuplicateKey,
    NotFound,
    PersistenceError,
    RemoteUnavailable,
    SecretsManagerError,
    ValidationError,
)
from secretmirror.routers import secrets
from secretmirror.schemas.secret import LoadContext

# ── Logging setup ────────────────────────────────────────────────────
_log_level = os.environ.get("SECRETMIRROR_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses first.
_STATUS_BY_ERROR: list[tuple[type[SecretsManagerError], int]] = [
    (ValidationError, 400),
    (NotFound, 404),
    (DuplicateKey, 409),
    (BindingCollision, 409),
    (RemoteUnavailable, 502),
    (PersistenceError, 500),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()

    # ── Pull remote names into the local store ───────────────────
    if settings.sync_on_startup:
        try:
            engine = bootstrap.build_sync_engine(settings.environment)
            result = await engine.sync(settings.environment)
            if result.failures:
                logger.warning("Startup sync finished with %d failures", len(result.failures))
        except SecretsManagerError as exc:
            logger.warning("Startup sync failed (non-fatal): %s", exc.message)

    # ── Deferred-bootstrap bindings ──────────────────────────────
    if settings.define_on_startup:
        try:
            await bootstrap.build_resolver().define_constants(LoadContext.DEFERRED_BOOTSTRAP)
        except BindingCollision:
            raise
        except SecretsManagerError as exc:
            logger.warning("Defining deferred bindings failed (non-fatal): %s", exc.message)

    yield


app = FastAPI(
    title="SecretMirror",
    description="Mirror remote secret metadata and expose secrets as runtime bindings",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SecretsManagerError)
async def secrets_error_handler(request: Request, exc: SecretsManagerError):
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    return JSONResponse(status_code=status, content=exc.to_dict())


# Mount routers
app.include_router(secrets.router, prefix="/api/secrets", tags=["secrets"])


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "secretmirror",
        "environment": settings.environment,
        "bindings": len(bootstrap.process_bindings),
    }
