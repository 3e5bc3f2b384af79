"""Secret CRUD, sync and constant endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from secretmirror.dependencies import (
    get_environment,
    get_resolver,
    get_secret_service,
    get_sync_engine,
)
from secretmirror.schemas.secret import (
    DefineResult,
    SecretCreate,
    SecretResponse,
    SecretUpdate,
    SyncResult,
)
from secretmirror.services.constant_resolver import ConstantResolver
from secretmirror.services.secret_service import SecretService
from secretmirror.services.sync_service import SyncEngine

router = APIRouter()


@router.post("/sync", response_model=SyncResult)
async def sync_secrets(
    environment: str = Depends(get_environment),
    engine: SyncEngine = Depends(get_sync_engine),
):
    """Reconcile local records with the remote store's names."""
    return await engine.sync(environment)


@router.post("/constants/{context}", response_model=DefineResult)
async def define_constants(context: str, resolver: ConstantResolver = Depends(get_resolver)):
    return await resolver.define_constants(context)


@router.post("/loader")
async def generate_loader(resolver: ConstantResolver = Depends(get_resolver)):
    if not resolver.generate_loader_artifact():
        raise HTTPException(status_code=500, detail="Failed to generate early-bootstrap loader")
    return {"generated": True}


@router.get("/", response_model=list[SecretResponse])
async def list_secrets(service: SecretService = Depends(get_secret_service)):
    return await service.list_secrets()


@router.get("/{secret_id}", response_model=SecretResponse)
async def get_secret(secret_id: int, service: SecretService = Depends(get_secret_service)):
    secret = await service.get(secret_id)
    if not secret:
        raise HTTPException(status_code=404, detail="Secret not found")
    return secret


@router.post("/", response_model=SecretResponse, status_code=201)
async def create_secret(data: SecretCreate, service: SecretService = Depends(get_secret_service)):
    return await service.create(data)


@router.patch("/{secret_id}", response_model=SecretResponse)
async def update_secret(
    secret_id: int, data: SecretUpdate, service: SecretService = Depends(get_secret_service)
):
    secret = await service.update(secret_id, data)
    if not secret:
        raise HTTPException(status_code=404, detail="Secret not found")
    return secret


@router.delete("/{secret_id}", status_code=204)
async def delete_secret(
    secret_id: int, force: bool = False, service: SecretService = Depends(get_secret_service)
):
    deleted = await service.delete(secret_id, force=force)
    if not deleted:
        raise HTTPException(status_code=404, detail="Secret not found")
