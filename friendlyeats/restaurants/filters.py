from __future__ import annotations

from typing import Any, Mapping

from ..docstore.query import Query
from .data_store import RESTAURANTS
from .models import RestaurantFilters, SortOrder

_SORT_FIELDS = {
    SortOrder.rating.value: "avg_rating",
    SortOrder.review.value: "num_ratings",
}
_DEFAULT_SORT_FIELD = "avg_rating"


def _coerce(filters: RestaurantFilters | Mapping[str, Any] | None) -> RestaurantFilters:
    if filters is None:
        return RestaurantFilters()
    if isinstance(filters, RestaurantFilters):
        return filters
    # Criteria that are not strings are treated as absent.
    known = {
        k: v for k, v in filters.items()
        if k in RestaurantFilters.model_fields and isinstance(v, str)
    }
    return RestaurantFilters(**known)


def sort_field(sort: str | None) -> str:
    """Map a sort name to the field to order by. Unknown names use the default."""
    return _SORT_FIELDS.get(sort or "", _DEFAULT_SORT_FIELD)


def apply_query_filters(
    query: Query,
    filters: RestaurantFilters | Mapping[str, Any] | None,
) -> Query:
    """Narrow ``query`` with each present criterion and add one descending ordering clause."""
    f = _coerce(filters)

    if f.category:
        query = query.where("category", f.category)
    if f.city:
        query = query.where("city", f.city)
    tier = f.price_tier
    if tier is not None:
        query = query.where("price", tier)

    return query.order_by(sort_field(f.sort), descending=True)


def build_restaurants_query(
    filters: RestaurantFilters | Mapping[str, Any] | None = None,
) -> Query:
    return apply_query_filters(Query(RESTAURANTS), filters)
