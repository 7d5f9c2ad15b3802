from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any

from ..docstore.store import DocumentStore
from .data_store import RATINGS, RESTAURANTS
from .models import MAX_PRICE_TIER, MIN_PRICE_TIER

logger = logging.getLogger(__name__)

DEFAULT_RESTAURANT_COUNT = 20
MAX_REVIEWS_PER_RESTAURANT = 5

NAME_PREFIXES = [
    "Savory", "Gourmet", "Delicious", "Tasty", "Cozy", "Golden", "Rustic",
    "Spicy", "Fresh", "Urban", "Little", "Hidden", "Happy", "Sunny",
]
NAME_SUFFIXES = [
    "Bistro", "Eatery", "Kitchen", "Grill", "Diner", "Cafe", "Table",
    "Spoon", "Corner", "House", "Garden", "Plate",
]
CITIES = [
    "Philadelphia", "New York", "Boston", "Chicago", "Austin", "Seattle",
    "Denver", "Portland", "San Francisco", "Los Angeles", "Atlanta", "Miami",
]
CATEGORIES = [
    "Italian", "Chinese", "Japanese", "Mexican", "Indian", "Mediterranean",
    "Caribbean", "Cajun", "German", "Russian", "Cuban", "Organic", "Tapas",
]
REVIEW_TEXTS = {
    1: ["Would never eat here again!", "Cold food and a long wait."],
    2: ["Not my cup of tea.", "Service was slow and the food was bland."],
    3: ["Exactly okay :/", "Fine for a quick bite, nothing memorable."],
    4: ["Actually pretty good, would recommend!", "Friendly staff and solid food."],
    5: ["This is my favorite place. Literally.", "Outstanding from start to finish."],
}


def _random_timestamp(rng: random.Random, now: datetime) -> datetime:
    return now - timedelta(days=rng.randint(0, 365), minutes=rng.randint(0, 24 * 60))


def generate_fake_restaurants_and_reviews(
    count: int = DEFAULT_RESTAURANT_COUNT,
    rng: random.Random | None = None,
) -> list[dict[str, Any]]:
    """
    Build sample restaurants, each with up to five reviews.

    Returns a list of ``{"restaurant": {...}, "reviews": [...]}``. Each
    restaurant's rating statistics match its generated reviews.
    """
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    data: list[dict[str, Any]] = []

    for _ in range(count):
        reviews = []
        for _ in range(rng.randint(0, MAX_REVIEWS_PER_RESTAURANT)):
            rating = rng.randint(1, 5)
            reviews.append({
                "rating": rating,
                "text": rng.choice(REVIEW_TEXTS[rating]),
                "user_id": f"sample-user-{rng.randint(1, 1000)}",
                "timestamp": _random_timestamp(rng, now),
            })

        num_ratings = len(reviews)
        sum_rating = sum(r["rating"] for r in reviews)
        restaurant = {
            "name": f"{rng.choice(NAME_PREFIXES)} {rng.choice(NAME_SUFFIXES)}",
            "category": rng.choice(CATEGORIES),
            "city": rng.choice(CITIES),
            "price": rng.randint(MIN_PRICE_TIER, MAX_PRICE_TIER),
            "num_ratings": num_ratings,
            "sum_rating": sum_rating,
            "avg_rating": sum_rating / num_ratings if num_ratings else None,
            "photo": None,
            "timestamp": _random_timestamp(rng, now),
        }
        data.append({"restaurant": restaurant, "reviews": reviews})

    return data


def add_fake_restaurants_and_reviews(
    db: DocumentStore,
    count: int = DEFAULT_RESTAURANT_COUNT,
    rng: random.Random | None = None,
) -> int:
    """Write sample data to ``db``. Returns the number of restaurants added."""
    added = 0
    for item in generate_fake_restaurants_and_reviews(count, rng):
        restaurant_ref = db.add(RESTAURANTS, item["restaurant"])
        for review in item["reviews"]:
            db.add(
                restaurant_ref.subcollection(RATINGS),
                {**review, "restaurant_id": restaurant_ref.id},
            )
        added += 1

    logger.info("Added %d sample restaurants", added)
    return added
