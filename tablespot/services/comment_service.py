"""
services/comment_service.py — Restaurant comments.

Authorization: any authenticated user may comment; only the author may
delete a comment.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablespot.errors import comment_not_found, forbidden
from tablespot.models.comment import Comment
from tablespot.services.restaurant_service import get_restaurant_or_404


def _build_comment_dict(comment: Comment) -> dict:
    result = {
        "id": comment.id,
        "restaurant_id": comment.restaurant_id,
        "user_id": comment.user_id,
        "body": comment.body,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "updated_at": comment.updated_at.isoformat() if comment.updated_at else None,
    }
    if comment.author is not None:
        result["user"] = {"id": comment.author.id, "name": comment.author.name}
    return result


def add_comment(restaurant_id: int, user_id: int, body: str, session: Session) -> dict:
    """
    Raises:
      RestaurantError(RESTAURANT_NOT_FOUND, 404)
    """
    get_restaurant_or_404(restaurant_id, session)

    comment = Comment(restaurant_id=restaurant_id, user_id=user_id, body=body)
    session.add(comment)
    session.flush()
    return _build_comment_dict(comment)


def list_comments(restaurant_id: int, session: Session) -> list[dict]:
    """Comments for a restaurant, newest first."""
    get_restaurant_or_404(restaurant_id, session)

    comments = session.execute(
        select(Comment)
        .where(Comment.restaurant_id == restaurant_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    ).unique().scalars().all()
    return [_build_comment_dict(c) for c in comments]


def delete_comment(restaurant_id: int, comment_id: int, user_id: int, session: Session) -> None:
    """
    Raises:
      RestaurantError(COMMENT_NOT_FOUND, 404) — no such comment on this restaurant
      RestaurantError(FORBIDDEN, 403)         — caller is not the author
    """
    comment = session.get(Comment, comment_id)
    if comment is None or comment.restaurant_id != restaurant_id:
        raise comment_not_found()
    if comment.user_id != user_id:
        raise forbidden()

    session.delete(comment)
    session.flush()
