"""Account row for players, hosts and staff.

Only `users` is ORM-mapped; every other table is reached through raw SQL
repositories. `role` is stored as text and interpreted exclusively through
the capability table in es_gateway.auth.capabilities. `platform_uid` is the
public <calling code>-<region>-<yy>-<seq> handle, assigned once at registration and
never reused.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.es_common.database import Base
from src.es_common.enums import UserRole
from src.es_gateway.auth.capabilities import Capability, resolve_capabilities


class UserModel(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('PLAYER', 'HOST', 'ADMIN', 'SUPERADMIN')", name="ck_users_role"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()")
    )
    username: Mapped[str] = mapped_column(String(64), unique=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(16), default=UserRole.PLAYER.value)
    platform_uid: Mapped[str | None] = mapped_column(String(32), unique=True)
    country: Mapped[str | None] = mapped_column(String(64))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("NOW()")
    )

    @property
    def capabilities(self) -> frozenset[Capability]:
        return resolve_capabilities(self.role)

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def __repr__(self) -> str:
        return f"<UserModel {self.username} role={self.role}>"
