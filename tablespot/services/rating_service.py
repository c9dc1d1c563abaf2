"""
services/rating_service.py — Star ratings and their aggregation.

One rating per (restaurant, user). Setting a rating again overwrites it.
Stars are integers in [1, 5]; anything else is RATING_INVALID (400).
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tablespot.errors import rating_invalid
from tablespot.models.rating import Rating
from tablespot.services.restaurant_service import average_rating, get_restaurant_or_404

MIN_STARS = 1
MAX_STARS = 5


def _build_rating_dict(rating: Rating) -> dict:
    return {
        "id": rating.id,
        "restaurant_id": rating.restaurant_id,
        "user_id": rating.user_id,
        "stars": rating.stars,
        "created_at": rating.created_at.isoformat() if rating.created_at else None,
        "updated_at": rating.updated_at.isoformat() if rating.updated_at else None,
    }


def _find_rating(restaurant_id: int, user_id: int, session: Session) -> Rating | None:
    return session.execute(
        select(Rating).where(
            Rating.restaurant_id == restaurant_id,
            Rating.user_id == user_id,
        )
    ).scalar_one_or_none()


def set_rating(restaurant_id: int, user_id: int, stars, session: Session) -> dict:
    """
    Creates or replaces the caller's rating for a restaurant.

    Raises:
      RestaurantError(RATING_INVALID, 400)
      RestaurantError(RESTAURANT_NOT_FOUND, 404)
    """
    # bool is an int subclass; True must not count as one star.
    if isinstance(stars, bool) or not isinstance(stars, int) or not MIN_STARS <= stars <= MAX_STARS:
        raise rating_invalid()

    get_restaurant_or_404(restaurant_id, session)

    rating = _find_rating(restaurant_id, user_id, session)
    if rating is None:
        rating = Rating(restaurant_id=restaurant_id, user_id=user_id, stars=stars)
        session.add(rating)
    else:
        rating.stars = stars

    session.flush()
    return _build_rating_dict(rating)


def get_rating_summary(restaurant_id: int, session: Session, user_id: int | None = None) -> dict:
    """
    Returns {average_rating, total_ratings, user_rating}.

    user_rating is the caller's stars, or None for anonymous callers and
    users who have not rated.
    """
    get_restaurant_or_404(restaurant_id, session)

    total = session.execute(
        select(func.count(Rating.id)).where(Rating.restaurant_id == restaurant_id)
    ).scalar_one()

    user_rating = None
    if user_id is not None:
        own = _find_rating(restaurant_id, user_id, session)
        if own is not None:
            user_rating = own.stars

    return {
        "average_rating": average_rating(restaurant_id, session),
        "total_ratings": total,
        "user_rating": user_rating,
    }
