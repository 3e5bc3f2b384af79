"""Secret record + request/response schemas."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

SECRET_NAME_PATTERN = r"^[A-Z0-9_]+$"


class LoadContext(StrEnum):
    """When during bootstrap a binding is materialized."""

    MANUAL = "manual"
    EARLY_BOOTSTRAP = "early_bootstrap"
    DEFERRED_BOOTSTRAP = "deferred_bootstrap"


class SecretStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SecretRecord(BaseModel):
    """In-memory view of one tracked secret's metadata.

    ``id``, ``created_at`` and ``updated_at`` are owned by the record store;
    values set here are ignored on save.
    """

    id: int | None = None
    name: str
    label: str = ""
    constant_name: str | None = None
    constant_enabled: bool = False
    load_context: LoadContext = LoadContext.MANUAL
    environment: str
    owned_by_system: bool = False
    deleted_locally: bool = False
    status: SecretStatus = SecretStatus.ACTIVE
    last_synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @property
    def binding_name(self) -> str:
        return self.constant_name or self.name


class SecretCreate(BaseModel):
    name: str = Field(..., pattern=SECRET_NAME_PATTERN, max_length=255)
    label: str = ""
    value: str  # plaintext — written to the remote store, never kept locally
    constant_name: str = Field("", pattern=r"^[A-Z0-9_]*$", max_length=255)
    constant_enabled: bool = False
    load_context: LoadContext = LoadContext.MANUAL


class SecretUpdate(BaseModel):
    label: str | None = None
    value: str | None = None  # new plaintext value
    constant_name: str | None = Field(None, pattern=r"^[A-Z0-9_]*$", max_length=255)  # "" resets to name
    constant_enabled: bool | None = None
    load_context: LoadContext | None = None


class SecretResponse(BaseModel):
    id: int
    name: str
    label: str
    constant_name: str | None
    constant_enabled: bool
    load_context: LoadContext
    environment: str
    owned_by_system: bool
    status: SecretStatus
    last_synced_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None
    # value is NEVER returned

    model_config = {"from_attributes": True}


# ── Sync / resolver results ──────────────────────────────────────────


class SyncFailure(BaseModel):
    kind: str
    identifier: str
    message: str


class SyncResult(BaseModel):
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failures: list[SyncFailure] = Field(default_factory=list)


class DefineResult(BaseModel):
    context: LoadContext
    defined: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
