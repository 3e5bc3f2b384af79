"""In-process remote store — for local development and tests."""

from secretmirror.adapters.base import RemoteSecret, RemoteSecretClient


class MemorySecretClient(RemoteSecretClient):
    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self.secrets: dict[str, str] = dict(secrets or {})

    async def list_secrets(self) -> list[RemoteSecret]:
        return [RemoteSecret(name=name) for name in sorted(self.secrets)]

    async def get(self, name: str) -> str | None:
        return self.secrets.get(name)

    async def put(self, name: str, value: str) -> None:
        self.secrets[name] = value

    async def delete(self, name: str) -> None:
        self.secrets.pop(name, None)
