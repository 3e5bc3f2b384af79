"""Sync service — reconciles local secret records with the remote store.

The remote store is authoritative for which names exist. Names seen for the
first time get a record with safe defaults (binding disabled, manual load).
Names already tracked keep their local metadata and are only reactivated.
Records whose name has disappeared remotely are hard-deleted.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

from secretmirror.adapters.base import RemoteSecret, RemoteSecretClient
from secretmirror.errors import DuplicateKey, RemoteUnavailable, SecretsManagerError
from secretmirror.schemas.secret import (
    SECRET_NAME_PATTERN,
    LoadContext,
    SecretRecord,
    SecretStatus,
    SyncFailure,
    SyncResult,
)
from secretmirror.services.record_store import RecordStore

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(SECRET_NAME_PATTERN)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncEngine:
    def __init__(
        self,
        store: RecordStore,
        remote: RemoteSecretClient,
        *,
        timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._remote = remote
        self._timeout = timeout
        self._clock = clock

    async def sync(self, environment: str) -> SyncResult:
        """Bring the records for ``environment`` in line with the remote listing.

        Raises ``RemoteUnavailable`` if the remote listing cannot be fetched;
        nothing is changed locally in that case. Per-record failures are
        collected in ``SyncResult.failures`` and do not stop the pass.
        """
        remote_secrets = await self._list_remote()
        local_map = {r.name: r for r in await self._store.list_by_environment(environment)}

        result = SyncResult()
        seen: set[str] = set()

        for entry in remote_secrets:
            name = entry.name
            if not name or name in seen:
                continue
            seen.add(name)

            existing = local_map.pop(name, None)
            if existing is not None:
                if existing.status != SecretStatus.ACTIVE:
                    existing.status = SecretStatus.ACTIVE
                    existing.last_synced_at = self._clock()
                    if await self._apply(result, name, self._store.save(existing)):
                        result.updated += 1
                continue

            if not _NAME_RE.match(name):
                self._fail(result, "validation", name, "Remote secret name is not a valid constant name")
                continue

            record = SecretRecord(
                name=name,
                label=name,
                constant_name=name,
                constant_enabled=False,
                load_context=LoadContext.MANUAL,
                environment=environment,
                owned_by_system=False,
                status=SecretStatus.ACTIVE,
                last_synced_at=self._clock(),
            )
            try:
                await self._store.save(record)
            except DuplicateKey:
                # A concurrent sync created it first.
                logger.info("Secret %s already created by another writer", name)
                continue
            except SecretsManagerError as exc:
                self._fail(result, exc.kind, name, exc.message)
                continue
            result.created += 1

        # Anything left was not listed remotely.
        for name, record in local_map.items():
            if await self._apply(result, name, self._store.delete(record.id)):
                result.deleted += 1

        logger.info(
            "Sync %s: %d created, %d updated, %d deleted, %d failed",
            environment, result.created, result.updated, result.deleted, len(result.failures),
        )
        return result

    async def _list_remote(self) -> list[RemoteSecret]:
        try:
            return await asyncio.wait_for(self._remote.list_secrets(), timeout=self._timeout)
        except TimeoutError as exc:
            raise RemoteUnavailable("list", f"Remote listing timed out after {self._timeout}s") from exc

    async def _apply(self, result: SyncResult, name: str, op) -> bool:
        try:
            return bool(await op)
        except SecretsManagerError as exc:
            self._fail(result, exc.kind, name, exc.message)
            return False

    @staticmethod
    def _fail(result: SyncResult, kind: str, name: str, message: str) -> None:
        logger.error("Sync failed for %s (%s): %s", name, kind, message)
        result.failures.append(SyncFailure(kind=kind, identifier=name, message=message))
