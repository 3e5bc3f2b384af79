"""Record store — CRUD over secret records, keyed by (name, environment).

Each mutating call runs in its own session and commits independently, so a
failure on one record never leaves another record's change half-applied.
The store does not validate name charsets; callers do that before saving.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from secretmirror.errors import DuplicateKey, NotFound, PersistenceError
from secretmirror.models.secret import SecretRow
from secretmirror.schemas.secret import SecretRecord

logger = logging.getLogger(__name__)

# Columns a client may write; id and timestamps belong to the store.
_WRITABLE = {
    "name",
    "label",
    "constant_name",
    "constant_enabled",
    "load_context",
    "environment",
    "owned_by_system",
    "deleted_locally",
    "status",
    "last_synced_at",
}


class RecordStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: SecretRecord) -> int:
        """Insert when ``record.id`` is None, update otherwise. Returns the id.

        Raises ``DuplicateKey`` when (name, environment) is already taken and
        ``PersistenceError`` for any other storage failure.
        """
        values = record.model_dump(include=_WRITABLE)
        async with self._session_factory() as db:
            try:
                if record.id is None:
                    row = SecretRow(**values)
                    db.add(row)
                else:
                    row = await db.get(SecretRow, record.id)
                    if row is None:
                        raise NotFound(str(record.id), f"Secret record {record.id} not found")
                    for field, value in values.items():
                        setattr(row, field, value)
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise DuplicateKey(record.name, record.environment) from exc
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Failed to save secret record %s: %s", record.name, exc)
                raise PersistenceError(record.name, f"Failed to save secret record: {exc}") from exc

            record.id = row.id
            return row.id

    async def get(self, record_id: int) -> SecretRecord | None:
        async with self._session_factory() as db:
            row = await self._run(db.get(SecretRow, record_id), str(record_id))
            return SecretRecord.model_validate(row) if row else None

    async def find_by_name(self, name: str, environment: str) -> SecretRecord | None:
        stmt = select(SecretRow).where(
            SecretRow.name == name, SecretRow.environment == environment
        )
        async with self._session_factory() as db:
            result = await self._run(db.execute(stmt), name)
            row = result.scalar_one_or_none()
            return SecretRecord.model_validate(row) if row else None

    async def list_by_environment(self, environment: str) -> list[SecretRecord]:
        stmt = (
            select(SecretRow)
            .where(SecretRow.environment == environment)
            .order_by(SecretRow.name)
        )
        async with self._session_factory() as db:
            result = await self._run(db.execute(stmt), environment)
            return [SecretRecord.model_validate(row) for row in result.scalars().all()]

    async def delete(self, record_id: int) -> bool:
        async with self._session_factory() as db:
            try:
                row = await db.get(SecretRow, record_id)
                if not row:
                    return False
                await db.delete(row)
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                raise PersistenceError(str(record_id), f"Failed to delete secret record: {exc}") from exc
            return True

    @staticmethod
    async def _run(awaitable, identifier: str):
        try:
            return await awaitable
        except SQLAlchemyError as exc:
            raise PersistenceError(identifier, f"Record store unavailable: {exc}") from exc
