"""Password recovery requests issued to users who forgot their password."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.user import User


class PasswordRecovery(Base):
    """A single-use password recovery token.

    Attributes:
        id: ULID primary key.
        user_id: Foreign key to the user who asked for recovery.
        token: Signed token mailed to the user.
        expires_at: After this instant the token can no longer be used.
        used_at: When the token was consumed (None while still usable).
    """

    __tablename__ = "password_recoveries"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    user: Mapped[User] = relationship("User", back_populates="password_recoveries")
