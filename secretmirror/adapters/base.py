"""Abstract base class for remote secret store clients.

The remote store is authoritative for which secrets exist and for their
values. Implementations are bound to one environment scope and must raise
``RemoteUnavailable`` for any transport failure, never a raw exception.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class RemoteSecret(BaseModel):
    name: str
    value: str | None = None


class RemoteSecretClient(ABC):
    """Contract that any remote secret store must satisfy."""

    @abstractmethod
    async def list_secrets(self) -> list[RemoteSecret]:
        """Return every secret in scope. Values may be omitted."""

    @abstractmethod
    async def get(self, name: str) -> str | None:
        """Return the secret value, or None if the name is absent."""

    @abstractmethod
    async def put(self, name: str, value: str) -> None:
        """Create or overwrite a secret."""

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove a secret. Deleting an absent name is not an error."""
