from secretmirror.models.secret import SecretRow

__all__ = ["SecretRow"]
