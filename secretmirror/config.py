"""SecretMirror configuration — loaded from environment / .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SECRETMIRROR_", extra="ignore")

    env: str = "development"
    secret_key: str = "change-me"
    database_url: str = "sqlite+aiosqlite:///./secretmirror.db"

    # Environment scope used when a caller does not name one
    environment: str = "dev"
    environments: list[str] = ["dev", "test", "live"]  # scopes a caller may name

    # Remote secret store
    remote_backend: str = "file"  # file | memory
    remote_store_path: Path = Path("remote_secrets.json")
    remote_timeout: float = 10.0  # seconds, per remote call

    # Constant materialization
    loader_path: Path = Path("bootstrap/early_secrets.py")
    creator_only: bool = False  # manage secrets but never define bindings
    export_bindings: bool = False  # mirror bindings into os.environ

    # Startup hooks
    sync_on_startup: bool = False
    define_on_startup: bool = True


settings = Settings()
