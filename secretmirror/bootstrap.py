"""Composition root — builds collaborators from settings.

``define_constants`` is also the entry point called by the generated
early-bootstrap loader, so it must work in a fresh process.
"""

from __future__ import annotations

import os

from secretmirror.adapters.base import RemoteSecretClient
from secretmirror.adapters.encrypted_file import EncryptedFileSecretClient
from secretmirror.adapters.memory import MemorySecretClient
from secretmirror.config import settings
from secretmirror.database import async_session, init_db
from secretmirror.errors import ValidationError
from secretmirror.schemas.secret import DefineResult
from secretmirror.services.constant_resolver import BindingTable, ConstantResolver
from secretmirror.services.record_store import RecordStore
from secretmirror.services.sync_service import SyncEngine

# One binding table per process lifetime.
process_bindings = BindingTable(export_to=os.environ if settings.export_bindings else None)

# Memory backend is for development only; one client per known environment.
_memory_clients: dict[str, MemorySecretClient] = {}


def known_environment(environment: str) -> str:
    if environment != settings.environment and environment not in settings.environments:
        raise ValidationError(environment, f"Unknown environment {environment!r}")
    return environment


def build_remote_client(environment: str) -> RemoteSecretClient:
    environment = known_environment(environment)
    if settings.remote_backend == "memory":
        return _memory_clients.setdefault(environment, MemorySecretClient())
    if settings.remote_backend == "file":
        return EncryptedFileSecretClient(settings.remote_store_path, environment, settings.secret_key)
    raise ValueError(f"Unknown remote backend: {settings.remote_backend!r}")


def build_store() -> RecordStore:
    return RecordStore(async_session)


def build_sync_engine(environment: str) -> SyncEngine:
    return SyncEngine(build_store(), build_remote_client(environment), timeout=settings.remote_timeout)


def build_resolver(environment: str | None = None) -> ConstantResolver:
    environment = environment or settings.environment
    return ConstantResolver(
        build_store(),
        build_remote_client(environment),
        environment,
        process_bindings,
        timeout=settings.remote_timeout,
        creator_only=settings.creator_only,
        loader_path=settings.loader_path,
    )


async def define_constants(context: str, environment: str | None = None) -> DefineResult:
    await init_db()
    return await build_resolver(environment).define_constants(context)
