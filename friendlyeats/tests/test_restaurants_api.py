from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from friendlyeats.app import app
from friendlyeats.docstore.store import DocumentStore
from friendlyeats.errors import TransactionFailed
from friendlyeats.media.config import MediaConfig
from friendlyeats.restaurants import data_store
from friendlyeats.restaurants.data_store import reset_db

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def _add_restaurant(db, **fields) -> str:
    data = {
        "name": "Test Kitchen", "category": "Indian", "city": "London", "price": 2,
        "num_ratings": 0, "sum_rating": 0, "avg_rating": None,
    }
    data.update(fields)
    return db.add("restaurants", data).id


def _seed_listing():
    db = reset_db()
    _add_restaurant(db, name="Curry Leaf", city="London", price=2,
                    num_ratings=10, sum_rating=35, avg_rating=3.5)
    _add_restaurant(db, name="Tandoor", city="Leeds", price=1,
                    num_ratings=1, sum_rating=5, avg_rating=5.0)
    _add_restaurant(db, name="Pasta Palace", category="Italian", city="London", price=3,
                    num_ratings=4, sum_rating=16, avg_rating=4.0)
    return db


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metadata_lists_cities_and_categories():
    _seed_listing()
    body = client.get("/metadata").json()
    assert body == {"cities": ["Leeds", "London"], "categories": ["Indian", "Italian"]}


# ── Listing ──────────────────────────────────────────────────────────────


def test_list_restaurants_default_sort():
    _seed_listing()
    resp = client.get("/restaurants")
    assert resp.status_code == 200
    names = [r["name"] for r in resp.json()]
    assert names == ["Tandoor", "Pasta Palace", "Curry Leaf"]


def test_list_restaurants_with_filters():
    _seed_listing()
    resp = client.get("/restaurants", params={"city": "London", "category": "Indian", "price": "$$"})
    body = resp.json()
    assert [r["name"] for r in body] == ["Curry Leaf"]
    assert body[0]["price"] == 2
    assert body[0]["price_display"] == "$$"


def test_list_restaurants_sorted_by_reviews():
    _seed_listing()
    names = [r["name"] for r in client.get("/restaurants", params={"sort": "Review"}).json()]
    assert names == ["Curry Leaf", "Pasta Palace", "Tandoor"]


def test_list_restaurants_bogus_sort_is_default():
    _seed_listing()
    default = client.get("/restaurants").json()
    bogus = client.get("/restaurants", params={"sort": "bogus"}).json()
    assert [r["id"] for r in bogus] == [r["id"] for r in default]


def test_restaurant_detail_and_404():
    db = reset_db()
    rid = _add_restaurant(db)
    assert client.get(f"/restaurants/{rid}").json()["name"] == "Test Kitchen"
    assert client.get("/restaurants/missing").status_code == 404


# ── Reviews ──────────────────────────────────────────────────────────────


def test_add_review_updates_statistics():
    db = reset_db()
    rid = _add_restaurant(db, num_ratings=2, sum_rating=7, avg_rating=3.5)
    _login_user(client)
    uid = client.get("/auth/me").json()["uid"]

    resp = client.post(f"/restaurants/{rid}/reviews", json={"rating": 5, "text": "Superb"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "recorded"
    assert body["restaurant"]["num_ratings"] == 3
    assert body["restaurant"]["sum_rating"] == 12
    assert body["restaurant"]["avg_rating"] == 4.0

    reviews = client.get(f"/restaurants/{rid}/reviews").json()
    assert len(reviews) == 1
    assert reviews[0]["id"] == body["review_id"]
    assert reviews[0]["user_id"] == uid
    assert reviews[0]["text"] == "Superb"


def test_add_review_to_unknown_restaurant():
    reset_db()
    _login_user(client)
    resp = client.post("/restaurants/missing/reviews", json={"rating": 5, "text": "Superb"})
    assert resp.status_code == 404


def test_add_review_validation():
    db = reset_db()
    rid = _add_restaurant(db)
    _login_user(client)
    assert client.post(f"/restaurants/{rid}/reviews", json={"rating": 6, "text": "x"}).status_code == 422
    assert client.post(f"/restaurants/{rid}/reviews", json={"rating": 3, "text": ""}).status_code == 422
    assert client.get(f"/restaurants/{rid}").json()["num_ratings"] == 0


def test_add_review_transaction_failure_returns_503():
    db = DocumentStore()
    rid = _add_restaurant(db)
    _login_user(client)

    with patch.object(data_store, "_db", db), \
            patch.object(db, "run_transaction", side_effect=TransactionFailed("gave up")):
        resp = client.post(f"/restaurants/{rid}/reviews", json={"rating": 4, "text": "Nice"})

    assert resp.status_code == 503


# ── Images ───────────────────────────────────────────────────────────────


def test_upload_image(tmp_path: Path):
    db = reset_db()
    rid = _add_restaurant(db)
    _login_user(client)

    with patch("friendlyeats.app.MEDIA_CONFIG", MediaConfig(images_dir=tmp_path)):
        resp = client.post(
            f"/restaurants/{rid}/image",
            files={"file": ("front.jpg", b"jpeg-bytes", "image/jpeg")},
        )

    assert resp.status_code == 200
    assert resp.json() == {"photo": f"/images/{rid}/front.jpg"}
    assert client.get(f"/restaurants/{rid}").json()["photo"] == f"/images/{rid}/front.jpg"
    assert (tmp_path / rid / "front.jpg").read_bytes() == b"jpeg-bytes"


def test_upload_empty_image_is_rejected(tmp_path: Path):
    db = reset_db()
    rid = _add_restaurant(db)
    _login_user(client)

    with patch("friendlyeats.app.MEDIA_CONFIG", MediaConfig(images_dir=tmp_path)):
        resp = client.post(f"/restaurants/{rid}/image", files={"file": ("a.jpg", b"", "image/jpeg")})

    assert resp.status_code == 400


# ── Summary ──────────────────────────────────────────────────────────────


def test_summary_without_reviews():
    db = reset_db()
    rid = _add_restaurant(db)
    body = client.get(f"/restaurants/{rid}/summary").json()
    assert body == {"summary": None, "message": "No reviews to summarize yet."}


@patch("friendlyeats.app.summarize_reviews", return_value="People love it.")
def test_summary_with_reviews(mock_summarize):
    db = reset_db()
    rid = _add_restaurant(db)
    _login_user(client)
    client.post(f"/restaurants/{rid}/reviews", json={"rating": 5, "text": "Loved it"})

    body = client.get(f"/restaurants/{rid}/summary").json()

    assert body == {"summary": "People love it.", "message": "Summarized with Groq"}
    reviews = mock_summarize.call_args.args[0]
    assert [r["text"] for r in reviews] == ["Loved it"]


@patch("friendlyeats.app.summarize_reviews", return_value=None)
def test_summary_llm_failure(mock_summarize):
    db = reset_db()
    rid = _add_restaurant(db)
    _login_user(client)
    client.post(f"/restaurants/{rid}/reviews", json={"rating": 2, "text": "Meh"})

    body = client.get(f"/restaurants/{rid}/summary").json()

    assert body == {"summary": None, "message": "Error summarizing reviews."}


# ── Seeding ──────────────────────────────────────────────────────────────


def test_seed_adds_restaurants():
    reset_db()
    _login_admin(client)
    resp = client.post("/seed", params={"count": 5})
    assert resp.status_code == 200
    assert resp.json()["restaurants_added"] == 5
    assert len(client.get("/restaurants").json()) == 5
