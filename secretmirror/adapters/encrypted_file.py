"""File-backed remote store — Fernet-encrypted values in a JSON document.

Layout: ``{"<environment>": {"<NAME>": "<fernet token>", ...}, ...}``.
Every read goes back to disk, so edits by other processes are picked up.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from cryptography.fernet import InvalidToken

from secretmirror.adapters.base import RemoteSecret, RemoteSecretClient
from secretmirror.errors import RemoteUnavailable
from secretmirror.utils.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)


class EncryptedFileSecretClient(RemoteSecretClient):
    def __init__(self, path: Path, environment: str, secret_key: str) -> None:
        self.path = Path(path)
        self.environment = environment
        self._secret_key = secret_key

    def _load(self) -> dict[str, dict[str, str]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            raise RemoteUnavailable(str(self.path), f"Cannot read remote store: {exc}") from exc
        if not isinstance(data, dict):
            raise RemoteUnavailable(str(self.path), "Remote store is not a JSON object")
        return data

    def _dump(self, data: dict[str, dict[str, str]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n")
            tmp.replace(self.path)
        except OSError as exc:
            raise RemoteUnavailable(str(self.path), f"Cannot write remote store: {exc}") from exc

    async def list_secrets(self) -> list[RemoteSecret]:
        scope = self._load().get(self.environment, {})
        return [RemoteSecret(name=name) for name in sorted(scope)]

    async def get(self, name: str) -> str | None:
        token = self._load().get(self.environment, {}).get(name)
        if token is None:
            return None
        try:
            return decrypt(token, self._secret_key)
        except InvalidToken as exc:
            raise RemoteUnavailable(name, "Stored value cannot be decrypted with the configured key") from exc

    async def put(self, name: str, value: str) -> None:
        data = self._load()
        data.setdefault(self.environment, {})[name] = encrypt(value, self._secret_key)
        self._dump(data)
        logger.debug("Wrote remote secret %s (%s)", name, self.environment)

    async def delete(self, name: str) -> None:
        data = self._load()
        scope = data.get(self.environment, {})
        if scope.pop(name, None) is not None:
            self._dump(data)
