from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Enum, Index, JSON, CheckConstraint, func
from datetime import datetime
from .db import Base
from sqlalchemy.orm import relationship
import enum
import uuid


class AccountStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING_DELETION = "PENDING_DELETION"
    DELETED = "DELETED"


class User(Base):
    """
    Local mirror of an identity provider account.

    The primary key is the identity provider's user id. Passwords are
    never stored here.
    """
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False)
    account_status = Column(
        Enum(AccountStatus, name="account_status", native_enum=False, length=20),
        default=AccountStatus.PENDING,
        nullable=False
    )
    email_verified = Column(Boolean, default=False, nullable=False)
    # Lockout state, not maintained by this service yet
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    profile = relationship(
        "UserProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "failed_login_attempts >= 0 AND failed_login_attempts <= 10",
            name="chk_failed_login_attempts"
        ),
        Index("idx_users_account_status", "account_status"),
        Index("idx_users_created_at", "created_at"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<User(user_id={self.user_id}, email={self.email}, account_status={self.account_status})>"


# Case-insensitive uniqueness over live rows; soft-deleted rows free the address
Index(
    "idx_users_email_lower",
    func.lower(User.email),
    unique=True,
    sqlite_where=User.deleted_at.is_(None),
    postgresql_where=User.deleted_at.is_(None),
)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    profile_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    display_name = Column(String(100), nullable=True)
    timezone = Column(String(50), default="UTC", nullable=False)
    language = Column(String(10), default="en", nullable=False)
    preferences = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="profile")
