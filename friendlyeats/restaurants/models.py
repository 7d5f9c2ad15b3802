from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

PRICE_SYMBOL = "$"
MIN_PRICE_TIER = 1
MAX_PRICE_TIER = 4


def price_tier_from_display(value: str | None) -> int | None:
    """
    Translate a display price such as ``"$$"`` into its numeric tier.

    The tier is the number of characters. Empty strings and strings longer
    than the highest tier mean "no price" rather than an error.
    """
    if not value:
        return None
    tier = len(value)
    if MIN_PRICE_TIER <= tier <= MAX_PRICE_TIER:
        return tier
    return None


def price_display(tier: int | None) -> str:
    if not tier:
        return ""
    return PRICE_SYMBOL * int(tier)


class SortOrder(str, Enum):
    rating = "Rating"
    review = "Review"


class RestaurantFilters(BaseModel):
    category: str | None = None
    city: str | None = None
    price: str | None = Field(
        default=None, description='Display price, e.g. "$$"; the tier is its length'
    )
    sort: str | None = Field(default=None, description='"Rating" (default) or "Review"')

    @property
    def price_tier(self) -> int | None:
        return price_tier_from_display(self.price)


class RestaurantOut(BaseModel):
    id: str
    name: str = ""
    category: str | None = None
    city: str | None = None
    price: int | None = None
    price_display: str = ""
    num_ratings: int = 0
    sum_rating: float = 0
    avg_rating: float | None = None
    photo: str | None = None
    timestamp: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> RestaurantOut:
        return cls(**doc, price_display=price_display(doc.get("price")))


class ReviewRequest(BaseModel):
    rating: float = Field(..., ge=1, le=5)
    text: str = Field(..., min_length=1, max_length=2000)


class ReviewOut(BaseModel):
    id: str
    restaurant_id: str
    user_id: str
    rating: float
    text: str
    timestamp: datetime | None = None


class AddReviewResponse(BaseModel):
    status: str
    review_id: str
    restaurant: RestaurantOut


class ImageUploadResponse(BaseModel):
    photo: str


class ReviewSummaryResponse(BaseModel):
    summary: str | None
    message: str
