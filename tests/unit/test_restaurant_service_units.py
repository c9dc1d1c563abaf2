"""
Unit tests for restaurant_service, rating_service and comment_service.

These tests run DB-free with mocked session/query behavior.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from tablespot.errors import AppError, ErrorCode
from tablespot.models import (  # noqa: F401  registers every mapper so relationships resolve
    comment,
    password_reset_token,
    rating,
    refresh_token,
    restaurant,
    user,
)
from tablespot.models.rating import Rating
from tablespot.services import comment_service, rating_service, restaurant_service

TS = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _restaurant(restaurant_id: int = 1, creator: int = 10, **overrides):
    values = dict(
        id=restaurant_id,
        name="Pasta Place",
        full_address="1 Main St",
        phone="555-0100",
        cuisine_type="italian",
        image_url=None,
        created_by_user_id=creator,
        created_at=TS,
        updated_at=TS,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _assert_error(exc_info, code: str, status: int) -> None:
    err = exc_info.value
    assert err.code == code
    assert err.http_status == status


# ═══════════════════════════════════════════════════════════════════════════
# restaurant_service
# ═══════════════════════════════════════════════════════════════════════════

def test_get_restaurant_or_404_raises_when_missing():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        restaurant_service.get_restaurant_or_404(restaurant_id=404, session=session)

    _assert_error(exc_info, ErrorCode.RESTAURANT_NOT_FOUND, 404)


def test_average_rating_is_zero_when_unrated():
    session = MagicMock()
    session.execute.return_value.scalar_one_or_none.return_value = None

    assert restaurant_service.average_rating(1, session) == 0.0


def test_average_rating_is_float():
    session = MagicMock()
    session.execute.return_value.scalar_one_or_none.return_value = 3.5

    assert restaurant_service.average_rating(1, session) == 3.5


def test_get_restaurant_includes_average_rating():
    session = MagicMock()
    session.get.return_value = _restaurant()
    session.execute.return_value.scalar_one_or_none.return_value = 4

    result = restaurant_service.get_restaurant(restaurant_id=1, session=session)

    assert result["name"] == "Pasta Place"
    assert result["created_at"] == TS.isoformat()
    assert result["average_rating"] == 4.0


def test_update_by_non_creator_is_forbidden():
    session = MagicMock()
    session.get.return_value = _restaurant(creator=10)

    with pytest.raises(AppError) as exc_info:
        restaurant_service.update_restaurant(
            restaurant_id=1, data={"name": "Mine now"}, user_id=99, session=session,
        )

    _assert_error(exc_info, ErrorCode.FORBIDDEN, 403)
    session.flush.assert_not_called()


def test_update_applies_only_present_fields():
    session = MagicMock()
    restaurant = _restaurant(creator=10)
    session.get.return_value = restaurant

    result = restaurant_service.update_restaurant(
        restaurant_id=1, data={"phone": "555-0199"}, user_id=10, session=session,
    )

    assert result["phone"] == "555-0199"
    assert result["name"] == "Pasta Place"
    session.flush.assert_called_once()


def test_delete_by_non_creator_is_forbidden():
    session = MagicMock()
    session.get.return_value = _restaurant(creator=10)

    with pytest.raises(AppError) as exc_info:
        restaurant_service.delete_restaurant(restaurant_id=1, user_id=99, session=session)

    _assert_error(exc_info, ErrorCode.FORBIDDEN, 403)
    session.delete.assert_not_called()


def test_delete_by_creator_removes_row():
    session = MagicMock()
    restaurant = _restaurant(creator=10)
    session.get.return_value = restaurant

    restaurant_service.delete_restaurant(restaurant_id=1, user_id=10, session=session)

    session.delete.assert_called_once_with(restaurant)


# ═══════════════════════════════════════════════════════════════════════════
# rating_service
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("stars", [0, 6, -1, 2.5, "4", None, True])
def test_set_rating_rejects_invalid_stars(stars):
    session = MagicMock()

    with pytest.raises(AppError) as exc_info:
        rating_service.set_rating(restaurant_id=1, user_id=10, stars=stars, session=session)

    _assert_error(exc_info, ErrorCode.RATING_INVALID, 400)
    session.add.assert_not_called()


def test_set_rating_on_missing_restaurant_is_404():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        rating_service.set_rating(restaurant_id=404, user_id=10, stars=4, session=session)

    _assert_error(exc_info, ErrorCode.RESTAURANT_NOT_FOUND, 404)


def test_set_rating_overwrites_existing_rating():
    session = MagicMock()
    session.get.return_value = _restaurant()
    existing = SimpleNamespace(
        id=3, restaurant_id=1, user_id=10, stars=2, created_at=TS, updated_at=TS,
    )
    session.execute.return_value.scalar_one_or_none.return_value = existing

    result = rating_service.set_rating(restaurant_id=1, user_id=10, stars=5, session=session)

    assert existing.stars == 5
    assert result["stars"] == 5
    session.add.assert_not_called()


def test_set_rating_creates_first_rating():
    session = MagicMock()
    session.get.return_value = _restaurant()
    session.execute.return_value.scalar_one_or_none.return_value = None

    rating_service.set_rating(restaurant_id=1, user_id=10, stars=4, session=session)

    added = session.add.call_args.args[0]
    assert isinstance(added, Rating)
    assert (added.restaurant_id, added.user_id, added.stars) == (1, 10, 4)


def test_rating_summary_for_anonymous_caller_has_no_user_rating():
    session = MagicMock()
    session.get.return_value = _restaurant()
    session.execute.return_value.scalar_one.return_value = 2
    session.execute.return_value.scalar_one_or_none.return_value = 4.5

    result = rating_service.get_rating_summary(restaurant_id=1, session=session)

    assert result == {"average_rating": 4.5, "total_ratings": 2, "user_rating": None}


# ═══════════════════════════════════════════════════════════════════════════
# comment_service
# ═══════════════════════════════════════════════════════════════════════════

def _comment(comment_id: int = 5, restaurant_id: int = 1, user_id: int = 10):
    return SimpleNamespace(
        id=comment_id,
        restaurant_id=restaurant_id,
        user_id=user_id,
        body="Great pasta",
        created_at=TS,
        updated_at=TS,
        author=SimpleNamespace(id=user_id, name="Alice"),
    )


def test_delete_missing_comment_is_404():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        comment_service.delete_comment(restaurant_id=1, comment_id=5, user_id=10, session=session)

    _assert_error(exc_info, ErrorCode.COMMENT_NOT_FOUND, 404)


def test_delete_comment_of_another_restaurant_is_404():
    session = MagicMock()
    session.get.return_value = _comment(restaurant_id=2)

    with pytest.raises(AppError) as exc_info:
        comment_service.delete_comment(restaurant_id=1, comment_id=5, user_id=10, session=session)

    _assert_error(exc_info, ErrorCode.COMMENT_NOT_FOUND, 404)


def test_delete_comment_by_non_author_is_forbidden():
    session = MagicMock()
    session.get.return_value = _comment(user_id=10)

    with pytest.raises(AppError) as exc_info:
        comment_service.delete_comment(restaurant_id=1, comment_id=5, user_id=99, session=session)

    _assert_error(exc_info, ErrorCode.FORBIDDEN, 403)
    session.delete.assert_not_called()


def test_list_comments_embeds_author():
    session = MagicMock()
    session.get.return_value = _restaurant()
    session.execute.return_value.unique.return_value.scalars.return_value.all.return_value = [_comment()]

    result = comment_service.list_comments(restaurant_id=1, session=session)

    assert result == [{
        "id": 5,
        "restaurant_id": 1,
        "user_id": 10,
        "body": "Great pasta",
        "created_at": TS.isoformat(),
        "updated_at": TS.isoformat(),
        "user": {"id": 10, "name": "Alice"},
    }]
