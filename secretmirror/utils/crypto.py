"""Fernet-based secret encryption/decryption."""

import base64
import hashlib

from cryptography.fernet import Fernet


def _get_fernet(secret_key: str) -> Fernet:
    key = secret_key.encode()
    # Fernet key must be 32-byte base64-encoded. If the user hasn't set a real
    # key, derive a deterministic one from the raw value (dev convenience).
    try:
        return Fernet(key)
    except ValueError:
        derived = base64.urlsafe_b64encode(hashlib.sha256(key).digest())
        return Fernet(derived)


def encrypt(plaintext: str, secret_key: str) -> str:
    return _get_fernet(secret_key).encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str, secret_key: str) -> str:
    return _get_fernet(secret_key).decrypt(ciphertext.encode()).decode()
