from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from ..docstore.query import Query
from ..docstore.store import DocumentSnapshot, DocumentStore, Unsubscribe
from ..errors import InvalidArgument, NotFound
from .data_store import RATINGS, RESTAURANTS
from .filters import build_restaurants_query
from .models import RestaurantFilters

logger = logging.getLogger(__name__)


def _to_dicts(snapshots: list[DocumentSnapshot]) -> list[dict[str, Any]]:
    return [snap.to_dict() for snap in snapshots]


def _require_callable(callback: Any) -> None:
    if not callable(callback):
        raise TypeError("callback must be callable")


def _reviews_query(db: DocumentStore, restaurant_id: str) -> Query:
    restaurant_ref = db.document(RESTAURANTS, restaurant_id)
    return Query(restaurant_ref.subcollection(RATINGS)).order_by("timestamp", descending=True)


def get_restaurants(
    db: DocumentStore,
    filters: RestaurantFilters | Mapping[str, Any] | None = None,
) -> list[dict[str, Any]]:
    return _to_dicts(db.run_query(build_restaurants_query(filters)))


def get_restaurants_snapshot(
    db: DocumentStore,
    callback: Callable[[list[dict[str, Any]]], None],
    filters: RestaurantFilters | Mapping[str, Any] | None = None,
) -> Unsubscribe:
    """Push the filtered restaurant list to ``callback`` now and on every change."""
    _require_callable(callback)
    return db.on_snapshot(
        build_restaurants_query(filters),
        lambda snapshots: callback(_to_dicts(snapshots)),
    )


def get_restaurant_by_id(db: DocumentStore, restaurant_id: str) -> dict[str, Any]:
    if not restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    snapshot = db.get(db.document(RESTAURANTS, restaurant_id))
    if not snapshot.exists:
        raise NotFound(f"restaurant {restaurant_id} does not exist")
    return snapshot.to_dict()


def get_restaurant_snapshot_by_id(
    db: DocumentStore,
    restaurant_id: str,
    callback: Callable[[dict[str, Any] | None], None],
) -> Unsubscribe:
    """
    Push the restaurant to ``callback`` now and every time it changes.

    The callback receives None while the restaurant does not exist.
    """
    if not restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    _require_callable(callback)
    return db.on_document_snapshot(
        db.document(RESTAURANTS, restaurant_id),
        lambda snapshot: callback(snapshot.to_dict()),
    )


def get_reviews_by_restaurant_id(db: DocumentStore, restaurant_id: str) -> list[dict[str, Any]]:
    """Return the restaurant's reviews, newest first."""
    if not restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    return _to_dicts(db.run_query(_reviews_query(db, restaurant_id)))


def get_reviews_snapshot_by_restaurant_id(
    db: DocumentStore,
    restaurant_id: str,
    callback: Callable[[list[dict[str, Any]]], None],
) -> Unsubscribe:
    if not restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    _require_callable(callback)
    return db.on_snapshot(
        _reviews_query(db, restaurant_id),
        lambda snapshots: callback(_to_dicts(snapshots)),
    )


def update_restaurant_image_reference(
    db: DocumentStore,
    restaurant_id: str,
    public_image_url: str,
) -> None:
    if not restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    db.update(db.document(RESTAURANTS, restaurant_id), {"photo": public_image_url})
    logger.info("Updated photo for restaurant %s", restaurant_id)
