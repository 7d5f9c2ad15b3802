from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from pydantic import BaseModel

from ..docstore.store import SERVER_TIMESTAMP, DocumentRef, DocumentStore, Transaction
from ..errors import FriendlyEatsError, InvalidArgument, NotFound
from .data_store import RATINGS, RESTAURANTS

logger = logging.getLogger(__name__)


def _rating_value(review: Mapping[str, Any]) -> float | int:
    raw = review.get("rating")
    if raw is None or isinstance(raw, bool):
        raise InvalidArgument("review has no numeric rating")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidArgument(f"review rating {raw!r} is not a number") from None
    if not math.isfinite(value):
        raise InvalidArgument(f"review rating {raw!r} is not a finite number")
    return int(value) if value.is_integer() else value


def _update_with_rating(
    transaction: Transaction,
    restaurant_ref: DocumentRef,
    rating_ref: DocumentRef,
    review: dict[str, Any],
    rating: float | int,
) -> None:
    restaurant = transaction.get(restaurant_ref)
    if not restaurant.exists:
        raise NotFound(f"restaurant {restaurant_ref.id} does not exist")

    new_num_ratings = (restaurant.get("num_ratings") or 0) + 1
    new_sum_rating = (restaurant.get("sum_rating") or 0) + rating
    new_average = new_sum_rating / new_num_ratings

    transaction.update(restaurant_ref, {
        "num_ratings": new_num_ratings,
        "sum_rating": new_sum_rating,
        "avg_rating": new_average,
    })
    transaction.set(rating_ref, {
        **review,
        "rating": rating,
        "restaurant_id": restaurant_ref.id,
        "timestamp": SERVER_TIMESTAMP,
    })


def add_review_to_restaurant(
    db: DocumentStore,
    restaurant_id: str,
    review: Mapping[str, Any] | BaseModel | None,
) -> str:
    """
    Store ``review`` under the restaurant and fold its rating into the
    restaurant's ``num_ratings``/``sum_rating``/``avg_rating``.

    Both writes happen in one transaction, so readers see either neither or
    both. Concurrent calls for the same restaurant are serialised by the
    store's conflict detection and retried there. The same payload submitted
    twice produces two reviews.

    Returns the id of the new review document.
    """
    try:
        if not restaurant_id:
            raise InvalidArgument("no restaurant ID provided")
        if not review:
            raise InvalidArgument("no review provided")

        payload = review.model_dump() if isinstance(review, BaseModel) else dict(review)
        rating = _rating_value(payload)

        restaurant_ref = db.document(RESTAURANTS, restaurant_id)
        rating_ref = db.document(restaurant_ref.subcollection(RATINGS))

        db.run_transaction(
            lambda transaction: _update_with_rating(
                transaction, restaurant_ref, rating_ref, payload, rating
            )
        )
    except FriendlyEatsError:
        logger.error(
            "There was an error adding the rating to restaurant %s",
            restaurant_id,
            exc_info=True,
        )
        raise

    return rating_ref.id
