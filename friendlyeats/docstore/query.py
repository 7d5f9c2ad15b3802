from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable

from ..errors import InvalidArgument

ASCENDING = "asc"
DESCENDING = "desc"


@dataclass(frozen=True)
class Query:
    """
    Immutable description of a read against one collection.

    Each builder method returns a new query; the original is left untouched,
    so partially built queries can be shared safely between callers.
    """

    collection: str
    filters: tuple[tuple[str, Any], ...] = field(default_factory=tuple)
    order: tuple[str, str] | None = None
    max_results: int | None = None

    def where(self, field_name: str, value: Any) -> Query:
        """Add an equality predicate. Predicates combine with AND."""
        return replace(self, filters=self.filters + ((field_name, value),))

    def order_by(self, field_name: str, descending: bool = True) -> Query:
        if self.order is not None:
            raise InvalidArgument(
                f"query already ordered by {self.order[0]!r}; only one ordering clause is supported"
            )
        direction = DESCENDING if descending else ASCENDING
        return replace(self, order=(field_name, direction))

    def limit(self, count: int) -> Query:
        if count < 1:
            raise InvalidArgument("limit must be a positive integer")
        return replace(self, max_results=count)

    def matches(self, data: dict[str, Any]) -> bool:
        return all(
            name in data and data[name] == value for name, value in self.filters
        )

    def apply(self, documents: Iterable[tuple[str, dict[str, Any]]]) -> list[tuple[str, dict[str, Any]]]:
        """Filter, sort and truncate ``(doc_id, data)`` pairs."""
        # Ties fall back to document id order.
        selected = sorted(
            ((doc_id, data) for doc_id, data in documents if self.matches(data)),
            key=lambda item: item[0],
        )

        if self.order is not None:
            name, direction = self.order
            present = [item for item in selected if item[1].get(name) is not None]
            missing = [item for item in selected if item[1].get(name) is None]
            present.sort(key=lambda item: item[1][name], reverse=direction == DESCENDING)
            selected = present + missing

        if self.max_results is not None:
            selected = selected[: self.max_results]
        return selected
