"""
models/restaurant.py — Restaurant table definition.

No business logic. Ratings and comments belong to the restaurant and are
deleted with it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablespot.extensions import db


class Restaurant(db.Model):
    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    full_address: Mapped[str] = mapped_column(String(500), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)

    cuisine_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # ON DELETE RESTRICT — a user who created restaurants cannot be deleted.
    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    ratings: Mapped[list["Rating"]] = relationship(  # noqa: F821
        "Rating",
        back_populates="restaurant",
        cascade="all, delete-orphan",
    )

    comments: Mapped[list["Comment"]] = relationship(  # noqa: F821
        "Comment",
        back_populates="restaurant",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Restaurant id={self.id} name={self.name!r}>"
