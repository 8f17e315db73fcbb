"""User ORM model: back-office credentials and OTP lockout counters."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import UserRole
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class User(CuidMixin, TimestampMixin, Base):
    """User model. Table: app_user. Username unique; email unique once set.

    Provisioned with a temporary password and password_setup_required=True;
    email and the final password are set by the first-login setup.
    """

    __tablename__ = "app_user"

    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    temp_password_set_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=text(f"'{UserRole.CUSTOMER.value}'")
    )
    password_setup_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    otp_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    otp_blocked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
