"""
routes/restaurants.py — Restaurant, rating and comment route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/restaurants):
  GET    /restaurants                           → 200  list (cuisine_type, limit, offset)
  POST   /restaurants                           → 201  create (auth)
  GET    /restaurants/:id                       → 200
  PATCH  /restaurants/:id                       → 200  creator only
  DELETE /restaurants/:id                       → 204  creator only
  GET    /restaurants/:id/ratings               → 200  summary (optional auth)
  PUT    /restaurants/:id/ratings               → 200  upsert own rating (auth)
  GET    /restaurants/:id/comments              → 200
  POST   /restaurants/:id/comments              → 201  (auth)
  DELETE /restaurants/:id/comments/:comment_id  → 204  author only
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from tablespot.extensions import db
from tablespot.middleware.auth_middleware import optional_auth, require_auth
from tablespot.schemas.restaurant_schema import (
    CreateCommentSchema,
    CreateRestaurantSchema,
    SetRatingSchema,
    UpdateRestaurantSchema,
)
from tablespot.services import comment_service, rating_service, restaurant_service

restaurants_bp = Blueprint("restaurants", __name__)


def _parse_non_negative_int(raw: str | None) -> int | None:
    """Digits only; anything else is ignored rather than rejected."""
    if raw is None or not raw.isdigit():
        return None
    return int(raw)


# ── Restaurants ────────────────────────────────────────────────────────────

@restaurants_bp.route("", methods=["GET"])
def list_restaurants():
    """GET /restaurants — Newest first, optionally filtered by cuisine_type."""
    result = restaurant_service.list_restaurants(
        session=db.session,
        cuisine_type=request.args.get("cuisine_type") or None,
        limit=_parse_non_negative_int(request.args.get("limit")),
        offset=_parse_non_negative_int(request.args.get("offset")),
    )
    return jsonify({"data": result}), 200


@restaurants_bp.route("", methods=["POST"])
@require_auth
def create_restaurant():
    """POST /restaurants — Caller becomes the creator."""
    data = CreateRestaurantSchema().load(request.get_json(force=True, silent=True) or {})
    result = restaurant_service.create_restaurant(
        data=data,
        created_by_user_id=g.user.id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result}), 201


@restaurants_bp.route("/<int:restaurant_id>", methods=["GET"])
def get_restaurant(restaurant_id: int):
    """GET /restaurants/:id — Restaurant with its average rating."""
    result = restaurant_service.get_restaurant(restaurant_id=restaurant_id, session=db.session)
    return jsonify({"data": result}), 200


@restaurants_bp.route("/<int:restaurant_id>", methods=["PATCH"])
@require_auth
def update_restaurant(restaurant_id: int):
    """PATCH /restaurants/:id — Partial update. Creator only."""
    data = UpdateRestaurantSchema().load(request.get_json(force=True, silent=True) or {})
    result = restaurant_service.update_restaurant(
        restaurant_id=restaurant_id,
        data=data,
        user_id=g.user.id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result}), 200


@restaurants_bp.route("/<int:restaurant_id>", methods=["DELETE"])
@require_auth
def delete_restaurant(restaurant_id: int):
    """DELETE /restaurants/:id — Removes ratings and comments too. Creator only."""
    restaurant_service.delete_restaurant(
        restaurant_id=restaurant_id,
        user_id=g.user.id,
        session=db.session,
    )
    db.session.commit()
    return "", 204


# ── Ratings ────────────────────────────────────────────────────────────────

@restaurants_bp.route("/<int:restaurant_id>/ratings", methods=["GET"])
@optional_auth
def get_ratings(restaurant_id: int):
    """GET /restaurants/:id/ratings — Summary; user_rating needs a session."""
    result = rating_service.get_rating_summary(
        restaurant_id=restaurant_id,
        session=db.session,
        user_id=g.user.id if g.user is not None else None,
    )
    return jsonify({"data": result}), 200


@restaurants_bp.route("/<int:restaurant_id>/ratings", methods=["PUT"])
@require_auth
def set_rating(restaurant_id: int):
    """PUT /restaurants/:id/ratings — Create or replace the caller's rating."""
    data = SetRatingSchema().load(request.get_json(force=True, silent=True) or {})
    result = rating_service.set_rating(
        restaurant_id=restaurant_id,
        user_id=g.user.id,
        stars=data["stars"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result}), 200


# ── Comments ───────────────────────────────────────────────────────────────

@restaurants_bp.route("/<int:restaurant_id>/comments", methods=["GET"])
def list_comments(restaurant_id: int):
    """GET /restaurants/:id/comments — Newest first."""
    result = comment_service.list_comments(restaurant_id=restaurant_id, session=db.session)
    return jsonify({"data": result}), 200


@restaurants_bp.route("/<int:restaurant_id>/comments", methods=["POST"])
@require_auth
def add_comment(restaurant_id: int):
    """POST /restaurants/:id/comments"""
    data = CreateCommentSchema().load(request.get_json(force=True, silent=True) or {})
    result = comment_service.add_comment(
        restaurant_id=restaurant_id,
        user_id=g.user.id,
        body=data["body"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result}), 201


@restaurants_bp.route("/<int:restaurant_id>/comments/<int:comment_id>", methods=["DELETE"])
@require_auth
def delete_comment(restaurant_id: int, comment_id: int):
    """DELETE /restaurants/:id/comments/:comment_id — Author only."""
    comment_service.delete_comment(
        restaurant_id=restaurant_id,
        comment_id=comment_id,
        user_id=g.user.id,
        session=db.session,
    )
    db.session.commit()
    return "", 204
