"""ORM model for proxy user accounts."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, func

from proxyusers.models.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


def _default_roles() -> list[str]:
    return [ROLE_USER]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """
    Account of a proxy user and the VM assigned to it.

    password holds the PBKDF2 hash once the account has been saved; the
    plaintext never reaches this model. roles[0] is the effective role.
    """

    __tablename__ = "proxy_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column("password", String(255), nullable=False, default="")
    salt = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    roles = Column(JSON, nullable=False, default=_default_roles)
    vm_id = Column(String(255), nullable=False, default="")
    vm_ip = Column(String(255), nullable=False, default="")
    vm_ip_id = Column(String(255), nullable=False, default="")
    volume_id = Column(String(255), nullable=False, default="")
    device_type = Column(String(255), nullable=False, default="")
    approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        "created",
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    def get_role(self) -> str:
        """Effective role: the first entry of roles."""
        return self.roles[0]

    def is_admin(self) -> bool:
        return self.get_role() == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"<Account username={self.username!r} roles={self.roles!r} approved={self.approved!r}>"
