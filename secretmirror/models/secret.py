"""Secret record ORM model — metadata mirrored from the remote secret store."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from secretmirror.database import Base


class SecretRow(Base):
    __tablename__ = "secret_records"
    __table_args__ = (UniqueConstraint("name", "environment", name="uq_secret_name_environment"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))  # remote secret name
    label: Mapped[str] = mapped_column(String(255), default="")
    constant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    constant_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    load_context: Mapped[str] = mapped_column(String(50), default="manual")
    environment: Mapped[str] = mapped_column(String(50))
    owned_by_system: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_locally: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(50), default="active")  # active|inactive
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
