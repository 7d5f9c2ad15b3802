from __future__ import annotations

import random

from friendlyeats.docstore.store import DocumentStore
from friendlyeats.restaurants.queries import get_restaurants, get_reviews_by_restaurant_id
from friendlyeats.restaurants.seed import (
    add_fake_restaurants_and_reviews,
    generate_fake_restaurants_and_reviews,
)


def test_generated_statistics_match_reviews():
    data = generate_fake_restaurants_and_reviews(30, random.Random(7))
    assert len(data) == 30
    for item in data:
        restaurant, reviews = item["restaurant"], item["reviews"]
        assert 1 <= restaurant["price"] <= 4
        assert restaurant["num_ratings"] == len(reviews)
        assert restaurant["sum_rating"] == sum(r["rating"] for r in reviews)
        if reviews:
            assert restaurant["avg_rating"] == restaurant["sum_rating"] / len(reviews)
        else:
            assert restaurant["avg_rating"] is None


def test_generation_is_reproducible_with_seeded_rng():
    first = generate_fake_restaurants_and_reviews(5, random.Random(1))
    second = generate_fake_restaurants_and_reviews(5, random.Random(1))
    assert [d["restaurant"]["name"] for d in first] == [d["restaurant"]["name"] for d in second]


def test_add_fake_restaurants_writes_restaurants_and_reviews():
    db = DocumentStore()
    added = add_fake_restaurants_and_reviews(db, 10, random.Random(3))

    restaurants = get_restaurants(db)
    assert added == 10
    assert len(restaurants) == 10
    for restaurant in restaurants:
        reviews = get_reviews_by_restaurant_id(db, restaurant["id"])
        assert len(reviews) == restaurant["num_ratings"]
        assert all(r["restaurant_id"] == restaurant["id"] for r in reviews)
