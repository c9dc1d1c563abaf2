"""
services/restaurant_service.py — Restaurant CRUD.

Authorization rules:
  - Anyone may list or read restaurants.
  - Any authenticated user may create one and becomes its creator.
  - Only the creator may update or delete it.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tablespot.errors import forbidden, restaurant_not_found
from tablespot.models.rating import Rating
from tablespot.models.restaurant import Restaurant

UPDATABLE_FIELDS = ("name", "full_address", "phone", "cuisine_type", "image_url")


# ── Private helpers ────────────────────────────────────────────────────────

def get_restaurant_or_404(restaurant_id: int, session: Session) -> Restaurant:
    """Returns the Restaurant or raises RESTAURANT_NOT_FOUND (404)."""
    restaurant = session.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise restaurant_not_found()
    return restaurant


def _require_creator(restaurant: Restaurant, user_id: int) -> None:
    if restaurant.created_by_user_id != user_id:
        raise forbidden()


def _isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None


def average_rating(restaurant_id: int, session: Session) -> float:
    """Mean star rating, 0 when the restaurant has no ratings."""
    value = session.execute(
        select(func.avg(Rating.stars)).where(Rating.restaurant_id == restaurant_id)
    ).scalar_one_or_none()
    return float(value) if value is not None else 0.0


def _build_restaurant_dict(restaurant: Restaurant) -> dict:
    """Serialises a Restaurant to a plain dict. No business logic."""
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "full_address": restaurant.full_address,
        "phone": restaurant.phone,
        "cuisine_type": restaurant.cuisine_type,
        "image_url": restaurant.image_url,
        "created_by_user_id": restaurant.created_by_user_id,
        "created_at": _isoformat(restaurant.created_at),
        "updated_at": _isoformat(restaurant.updated_at),
    }


# ── Public service functions ───────────────────────────────────────────────

def create_restaurant(data: dict, created_by_user_id: int, session: Session) -> dict:
    """
    Creates a restaurant owned by `created_by_user_id`.

    Args:
        data: validated CreateRestaurantSchema output.
    """
    restaurant = Restaurant(
        name=data["name"],
        full_address=data["full_address"],
        phone=data["phone"],
        cuisine_type=data["cuisine_type"],
        image_url=data.get("image_url"),
        created_by_user_id=created_by_user_id,
    )
    session.add(restaurant)
    session.flush()
    return _build_restaurant_dict(restaurant)


def get_restaurant(restaurant_id: int, session: Session) -> dict:
    """
    Returns a restaurant with its average rating.

    Raises:
      RestaurantError(RESTAURANT_NOT_FOUND, 404)
    """
    restaurant = get_restaurant_or_404(restaurant_id, session)
    return {
        **_build_restaurant_dict(restaurant),
        "average_rating": average_rating(restaurant.id, session),
    }


def list_restaurants(
        session: Session,
        cuisine_type: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
) -> list[dict]:
    """Returns restaurants newest first, each with its average rating."""
    stmt = select(Restaurant).order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
    if cuisine_type is not None:
        stmt = stmt.where(Restaurant.cuisine_type == cuisine_type)
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset is not None:
        stmt = stmt.offset(offset)

    restaurants = session.execute(stmt).scalars().all()
    return [
        {
            **_build_restaurant_dict(r),
            "average_rating": average_rating(r.id, session),
        }
        for r in restaurants
    ]


def update_restaurant(restaurant_id: int, data: dict, user_id: int, session: Session) -> dict:
    """
    Applies a partial update. Only keys present in `data` are changed.

    Raises:
      RestaurantError(RESTAURANT_NOT_FOUND, 404)
      RestaurantError(FORBIDDEN, 403) — caller is not the creator
    """
    restaurant = get_restaurant_or_404(restaurant_id, session)
    _require_creator(restaurant, user_id)

    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(restaurant, field, data[field])

    session.flush()
    return _build_restaurant_dict(restaurant)


def delete_restaurant(restaurant_id: int, user_id: int, session: Session) -> None:
    """
    Deletes a restaurant together with its ratings and comments.

    Raises:
      RestaurantError(RESTAURANT_NOT_FOUND, 404)
      RestaurantError(FORBIDDEN, 403) — caller is not the creator
    """
    restaurant = get_restaurant_or_404(restaurant_id, session)
    _require_creator(restaurant, user_id)

    session.delete(restaurant)
    session.flush()
