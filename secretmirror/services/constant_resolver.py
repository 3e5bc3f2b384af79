"""Constant resolver — materializes enabled secrets as named bindings."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, MutableMapping
from pathlib import Path

import jinja2

from secretmirror.adapters.base import RemoteSecretClient
from secretmirror.errors import BindingCollision, InvalidContext, RemoteUnavailable
from secretmirror.schemas.secret import DefineResult, LoadContext, SecretStatus
from secretmirror.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class BindingTable(Mapping[str, str]):
    """Append-only name → value map.

    Defining a name twice with the same value is a no-op; with a different
    value it raises ``BindingCollision``. When ``export_to`` is given (e.g.
    ``os.environ``) every new binding is mirrored there as well.
    """

    def __init__(self, export_to: MutableMapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = {}
        self._export_to = export_to

    def define(self, name: str, value: str) -> bool:
        """Return True if the binding is new, False if it already held ``value``."""
        if name in self._values:
            if self._values[name] != value:
                raise BindingCollision(name, f"Binding {name!r} is already defined with a different value")
            return False
        self._values[name] = value
        if self._export_to is not None:
            self._export_to[name] = value
        return True

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


_LOADER_TEMPLATE = '''\
"""Early-bootstrap secret loader. Generated by secretmirror — do not edit."""

import asyncio

from secretmirror.bootstrap import define_constants

asyncio.run(define_constants({{ context|tojson }}, environment={{ environment|tojson }}))
'''


class ConstantResolver:
    def __init__(
        self,
        store: RecordStore,
        remote: RemoteSecretClient,
        environment: str,
        bindings: BindingTable,
        *,
        timeout: float | None = None,
        creator_only: bool = False,
        loader_path: Path | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self.environment = environment
        self.bindings = bindings
        self._timeout = timeout
        self._creator_only = creator_only
        self._loader_path = loader_path

    async def define_constants(self, context: str) -> DefineResult:
        """Define a binding for every active, enabled record in ``context``.

        Records whose value cannot be fetched are skipped with a warning.
        A ``BindingCollision`` stops the pass; bindings defined before it stay.
        """
        try:
            load_context = LoadContext(context)
        except ValueError:
            raise InvalidContext(
                str(context),
                "Invalid context. Must be one of: " + ", ".join(c.value for c in LoadContext),
            ) from None

        result = DefineResult(context=load_context)
        if self._creator_only:
            logger.info("Creator-only mode: not defining %s bindings", load_context)
            return result

        records = [
            r
            for r in await self._store.list_by_environment(self.environment)
            if r.status == SecretStatus.ACTIVE
            and r.constant_enabled
            and r.load_context == load_context
        ]

        for record in records:
            value = await self._fetch(record.name)
            if value is None:
                result.skipped.append(record.name)
                continue
            if self.bindings.define(record.binding_name, value):
                result.defined.append(record.binding_name)

        logger.info(
            "Defined %d %s bindings (%d skipped)",
            len(result.defined), load_context, len(result.skipped),
        )
        return result

    async def _fetch(self, name: str) -> str | None:
        try:
            value = await asyncio.wait_for(self._remote.get(name), timeout=self._timeout)
        except TimeoutError:
            logger.warning("Timed out fetching secret %s; binding skipped", name)
            return None
        except RemoteUnavailable as exc:
            logger.warning("Could not fetch secret %s; binding skipped: %s", name, exc.message)
            return None
        if value is None:
            logger.warning("Secret %s is missing from the remote store; binding skipped", name)
        return value

    def generate_loader_artifact(self) -> bool:
        """Write the early-bootstrap loader script. Returns False if it cannot be written."""
        if self._loader_path is None:
            logger.error("No loader path configured")
            return False

        content = jinja2.Environment(autoescape=False).from_string(_LOADER_TEMPLATE).render(
            context=LoadContext.EARLY_BOOTSTRAP.value,
            environment=self.environment,
        )
        try:
            self._loader_path.parent.mkdir(parents=True, exist_ok=True)
            self._loader_path.write_text(content + "\n")
        except OSError as exc:
            logger.error("Failed to write loader to %s: %s", self._loader_path, exc)
            return False

        logger.info("Wrote early-bootstrap loader to %s", self._loader_path)
        return True
