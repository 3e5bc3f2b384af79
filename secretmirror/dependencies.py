"""FastAPI dependency providers. Tests swap these via ``app.dependency_overrides``."""

from fastapi import Depends

from secretmirror import bootstrap
from secretmirror.adapters.base import RemoteSecretClient
from secretmirror.config import settings
from secretmirror.services.constant_resolver import BindingTable, ConstantResolver
from secretmirror.services.record_store import RecordStore
from secretmirror.services.secret_service import SecretService
from secretmirror.services.sync_service import SyncEngine


def get_environment(environment: str | None = None) -> str:
    return bootstrap.known_environment(environment or settings.environment)


def get_store() -> RecordStore:
    return bootstrap.build_store()


def get_remote_client(environment: str = Depends(get_environment)) -> RemoteSecretClient:
    return bootstrap.build_remote_client(environment)


def get_bindings() -> BindingTable:
    return bootstrap.process_bindings


def get_secret_service(
    environment: str = Depends(get_environment),
    store: RecordStore = Depends(get_store),
    remote: RemoteSecretClient = Depends(get_remote_client),
) -> SecretService:
    return SecretService(store, remote, environment, timeout=settings.remote_timeout)


def get_sync_engine(
    store: RecordStore = Depends(get_store),
    remote: RemoteSecretClient = Depends(get_remote_client),
) -> SyncEngine:
    return SyncEngine(store, remote, timeout=settings.remote_timeout)


def get_resolver(
    environment: str = Depends(get_environment),
    store: RecordStore = Depends(get_store),
    remote: RemoteSecretClient = Depends(get_remote_client),
    bindings: BindingTable = Depends(get_bindings),
) -> ConstantResolver:
    return ConstantResolver(
        store,
        remote,
        environment,
        bindings,
        timeout=settings.remote_timeout,
        creator_only=settings.creator_only,
        loader_path=settings.loader_path,
    )
