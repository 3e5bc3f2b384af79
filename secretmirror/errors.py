"""Structured error taxonomy.

Every error carries a ``kind`` and the offending identifier so the HTTP layer
(or any other caller) can render a consistent message.
"""

from __future__ import annotations


class SecretsManagerError(Exception):
    kind = "error"

    def __init__(self, identifier: str, message: str = "") -> None:
        self.identifier = identifier
        self.message = message or f"{self.kind}: {identifier}"
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "identifier": self.identifier, "detail": self.message}


class ValidationError(SecretsManagerError):
    """Bad secret/constant name or load context. Nothing was mutated."""

    kind = "validation"


class InvalidContext(ValidationError):
    kind = "invalid_context"


class NotFound(SecretsManagerError):
    kind = "not_found"


class RemoteUnavailable(SecretsManagerError):
    """Transport failure (or timeout) talking to the remote secret store."""

    kind = "remote_unavailable"


class PersistenceError(SecretsManagerError):
    kind = "persistence"


class DuplicateKey(PersistenceError):
    """(name, environment) already exists in the record store."""

    kind = "duplicate_key"

    def __init__(self, name: str, environment: str) -> None:
        self.environment = environment
        super().__init__(name, f"Secret {name!r} already exists in environment {environment!r}")


class BindingCollision(SecretsManagerError):
    """Two records map to the same binding name with different values."""

    kind = "binding_collision"
