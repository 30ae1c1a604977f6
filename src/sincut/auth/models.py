"""User record models: identity, wallet state and append-only history logs."""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates

from sincut.storage.db import Base


class UserRole(str, Enum):
    """User roles."""
    USER = "user"
    ADMIN = "admin"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class OccupationType(str, Enum):
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    STUDENT = "student"
    ENTREPRENEUR = "entrepreneur"
    OTHER = "other"


class WalletEntryType(str, Enum):
    """Reasons a wallet balance changes."""
    EARN = "earn"
    SPEND = "spend"
    CONVERSION = "conversion"
    DIVINE_COIN_RECEIVED = "divine_coin_received"
    DIVINE_COIN_USED = "divine_coin_used"
    REFERRAL_BONUS = "referral_bonus"
    CONFESSION_PAYMENT_BONUS = "confession_payment_bonus"


class ReferralAction(str, Enum):
    """Referral history actions."""
    SIGNUP_BONUS = "signup_bonus"
    CONFESSION_PAYMENT = "confession_payment"
    REFERRAL_BONUS = "referral_bonus"


class UserAccount(Base):
    """User account with embedded wallet and referral state."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_users_coins_non_negative"),
        CheckConstraint("divine_coins >= 0", name="ck_users_divine_coins_non_negative"),
    )

    id = Column(Integer, primary_key=True)

    # Identity
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)

    # Single active session
    refresh_token = Column(Text, nullable=True)

    # Profile
    gender = Column(SQLEnum(Gender), nullable=True)
    occupation_type = Column(SQLEnum(OccupationType), nullable=True)
    occupation = Column(String(255), nullable=True)
    agreed_to_privacy_policy = Column(Boolean, default=False, nullable=False)
    profile_image = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    bio = Column(String(200), nullable=True)
    email_updates = Column(Boolean, default=True)
    sms_updates = Column(Boolean, default=False)

    # Referral
    referral_code = Column(String(20), unique=True, nullable=False, index=True)
    referred_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    referral_count = Column(Integer, default=0, nullable=False)

    # Wallet
    coins = Column(Integer, default=0, nullable=False)
    divine_coins = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    referred_by = relationship("UserAccount", remote_side=[id])
    wallet_history = relationship(
        "WalletEntry",
        back_populates="user",
        order_by="WalletEntry.id",
        cascade="all, delete-orphan",
    )
    referral_history = relationship(
        "ReferralEntry",
        back_populates="user",
        foreign_keys="ReferralEntry.user_id",
        order_by="ReferralEntry.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<UserAccount(id={self.id}, email={self.email}, coins={self.coins})>"

    @validates("referral_code", "referred_by_id")
    def _validate_write_once(self, key, value):
        """Referral code and referrer are assigned once, at creation."""
        current = getattr(self, key)
        if current is not None and value != current:
            raise ValueError(f"{key} cannot be changed once set")
        return value


class WalletEntry(Base):
    """Immutable wallet history record."""
    __tablename__ = "wallet_history"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    type = Column(SQLEnum(WalletEntryType), nullable=False)
    amount = Column(Integer, nullable=False)  # Signed: negative = debit
    description = Column(String(500), nullable=True)
    message = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("UserAccount", back_populates="wallet_history")

    def __repr__(self):
        return f"<WalletEntry(user={self.user_id}, type={self.type}, amount={self.amount})>"


class ReferralEntry(Base):
    """Immutable referral history record."""
    __tablename__ = "referral_history"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    action = Column(SQLEnum(ReferralAction), nullable=False)
    amount = Column(Integer, nullable=False)
    referred_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    by = Column(String(50), nullable=True)  # Who initiated the action

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("UserAccount", back_populates="referral_history", foreign_keys=[user_id])
    referred_user = relationship("UserAccount", foreign_keys=[referred_user_id])

    def __repr__(self):
        return f"<ReferralEntry(user={self.user_id}, action={self.action}, amount={self.amount})>"


# Pydantic models for API
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class User(ApiModel):
    """User data for API responses (no password hash, no refresh token)."""
    id: int
    email: str
    name: str | None = None
    role: UserRole
    gender: Gender | None = None
    occupation_type: OccupationType | None = None
    occupation: str | None = None
    referral_code: str
    referred_by_id: int | None = None
    referral_count: int = 0
    coins: int = 0
    divine_coins: int = 0
    profile_image: str | None = None
    phone: str | None = None
    bio: str | None = None
    email_updates: bool | None = True
    sms_updates: bool | None = False
    created_at: datetime | None = None
