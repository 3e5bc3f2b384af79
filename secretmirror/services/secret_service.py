"""Secret service — operator CRUD with name validation and remote write-through."""

from __future__ import annotations

import asyncio
import logging
import re

from secretmirror.adapters.base import RemoteSecretClient
from secretmirror.errors import DuplicateKey, RemoteUnavailable, ValidationError
from secretmirror.schemas.secret import (
    SECRET_NAME_PATTERN,
    SecretCreate,
    SecretRecord,
    SecretStatus,
    SecretUpdate,
)
from secretmirror.services.record_store import RecordStore

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(SECRET_NAME_PATTERN)


def validate_name(value: str, field: str = "name") -> None:
    if not _NAME_RE.match(value or ""):
        raise ValidationError(
            value,
            f"Invalid {field} {value!r}. Must contain only uppercase letters, numbers, and underscores.",
        )


def validate_record(record: SecretRecord) -> None:
    validate_name(record.name)
    if record.constant_name:
        validate_name(record.constant_name, "constant_name")


class SecretService:
    def __init__(
        self,
        store: RecordStore,
        remote: RemoteSecretClient,
        environment: str,
        *,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self.environment = environment
        self._timeout = timeout

    async def list_secrets(self) -> list[SecretRecord]:
        return await self._store.list_by_environment(self.environment)

    async def get(self, record_id: int) -> SecretRecord | None:
        """Return the record only if it belongs to this service's environment."""
        record = await self._store.get(record_id)
        if record is None or record.environment != self.environment:
            return None
        return record

    async def save(self, record: SecretRecord) -> int:
        validate_record(record)
        return await self._store.save(record)

    async def create(self, data: SecretCreate) -> SecretRecord:
        record = SecretRecord(
            name=data.name,
            label=data.label,
            constant_name=data.constant_name or data.name,
            constant_enabled=data.constant_enabled,
            load_context=data.load_context,
            environment=self.environment,
            owned_by_system=True,
            status=SecretStatus.ACTIVE,
        )
        validate_record(record)

        # A tracked name keeps its remote value.
        if await self._store.find_by_name(data.name, self.environment) is not None:
            raise DuplicateKey(data.name, self.environment)

        await self._remote_call(self._remote.put(data.name, data.value), data.name)
        await self._store.save(record)
        logger.info("Created secret %s (%s)", record.name, self.environment)
        return await self._store.get(record.id) or record

    async def update(self, record_id: int, data: SecretUpdate) -> SecretRecord | None:
        record = await self.get(record_id)
        if not record:
            return None

        changes = data.model_dump(exclude_unset=True, exclude={"value"})
        if changes.get("constant_name") == "":
            changes["constant_name"] = record.name
        elif changes.get("constant_name") is not None:
            validate_name(changes["constant_name"], "constant_name")
        if data.value is not None:
            await self._remote_call(self._remote.put(record.name, data.value), record.name)

        for field, value in changes.items():
            if value is not None:
                setattr(record, field, value)

        await self._store.save(record)
        return await self._store.get(record_id)

    async def delete(self, record_id: int, *, force: bool = False) -> bool:
        """Delete the local record; with ``force`` also remove it remotely."""
        record = await self.get(record_id)
        if not record:
            return False

        if force:
            try:
                await self._remote_call(self._remote.delete(record.name), record.name)
            except RemoteUnavailable as exc:
                logger.warning("Failed to delete secret %s remotely: %s", record.name, exc.message)

        return await self._store.delete(record_id)

    async def _remote_call(self, op, name: str) -> None:
        try:
            await asyncio.wait_for(op, timeout=self._timeout)
        except TimeoutError as exc:
            raise RemoteUnavailable(name, f"Remote store timed out after {self._timeout}s") from exc
