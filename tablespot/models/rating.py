"""
models/rating.py — Rating table definition.

UNIQUE(restaurant_id, user_id): one rating per user per restaurant; a second
submission updates the existing row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablespot.extensions import db


class Rating(db.Model):
    __tablename__ = "ratings"

    __table_args__ = (
        UniqueConstraint("restaurant_id", "user_id", name="uq_ratings_restaurant_user"),
        CheckConstraint("stars BETWEEN 1 AND 5", name="ck_ratings_stars_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    stars: Mapped[int] = mapped_column(Integer, nullable=False)

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

    restaurant: Mapped["Restaurant"] = relationship(  # noqa: F821
        "Restaurant",
        back_populates="ratings",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Rating id={self.id} "
            f"restaurant_id={self.restaurant_id} "
            f"user_id={self.user_id} "
            f"stars={self.stars}>"
        )
