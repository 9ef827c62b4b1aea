"""ORM model for member accounts (the durable source of truth)."""

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, func

from app.models.base import Base

ACCOUNT_STATUS_ACTIVE = "active"
ACCOUNT_STATUS_BANNED = "banned"
ACCOUNT_ROLE_USER = "user"
ACCOUNT_ROLE_ADMIN = "admin"


class Account(Base):
    """
    Member account.

    id is assigned by the database identity column and never changes.
    Accounts are soft-deleted through deleted_at; rows are never removed,
    so ids are never reused.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("exp >= 0", name="ck_accounts_exp_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(64), nullable=False, default="")
    avatar_url = Column(String(1024), nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    exp = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=ACCOUNT_STATUS_ACTIVE)
    role = Column(String(16), nullable=False, default=ACCOUNT_ROLE_USER)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
