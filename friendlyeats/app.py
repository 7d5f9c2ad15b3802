from __future__ import annotations

import os

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi import Query as QueryParam
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import current_user_id, require_admin, require_user
from .auth.models import LoginRequest
from .auth.users import authenticate
from .errors import InvalidArgument, NotFound, TransactionFailed
from .llm.groq_client import summarize_reviews
from .media.config import DEFAULT_MEDIA_CONFIG
from .media.images import update_restaurant_image
from .restaurants.data_store import get_db
from .restaurants.models import (
    AddReviewResponse,
    ImageUploadResponse,
    RestaurantFilters,
    RestaurantOut,
    ReviewOut,
    ReviewRequest,
    ReviewSummaryResponse,
)
from .restaurants.queries import (
    get_restaurant_by_id,
    get_restaurants,
    get_reviews_by_restaurant_id,
)
from .restaurants.ratings import add_review_to_restaurant
from .restaurants.seed import DEFAULT_RESTAURANT_COUNT, add_fake_restaurants_and_reviews

MEDIA_CONFIG = DEFAULT_MEDIA_CONFIG

app = FastAPI(title="FriendlyEats API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "friendlyeats-secret-change-in-production"),
)


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(InvalidArgument)
def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(TransactionFailed)
def transaction_failed_handler(request: Request, exc: TransactionFailed) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"detail": "The review could not be saved right now. Please try again."},
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    restaurants = get_restaurants(get_db())
    cities = sorted({r["city"] for r in restaurants if r.get("city")})
    categories = sorted({r["category"] for r in restaurants if r.get("category")})
    return {"cities": cities, "categories": categories}


@app.get("/restaurants", response_model=list[RestaurantOut])
def list_restaurants(
    category: str | None = None,
    city: str | None = None,
    price: str | None = None,
    sort: str | None = None,
) -> list[RestaurantOut]:
    # e.g. /restaurants?city=London&category=Indian&price=$$&sort=Review
    filters = RestaurantFilters(category=category, city=city, price=price, sort=sort)
    return [RestaurantOut.from_document(doc) for doc in get_restaurants(get_db(), filters)]


@app.get("/restaurants/{restaurant_id}", response_model=RestaurantOut)
def restaurant_detail(restaurant_id: str) -> RestaurantOut:
    return RestaurantOut.from_document(get_restaurant_by_id(get_db(), restaurant_id))


@app.get("/restaurants/{restaurant_id}/reviews", response_model=list[ReviewOut])
def restaurant_reviews(restaurant_id: str) -> list[ReviewOut]:
    db = get_db()
    get_restaurant_by_id(db, restaurant_id)
    return [ReviewOut(**doc) for doc in get_reviews_by_restaurant_id(db, restaurant_id)]


@app.get("/restaurants/{restaurant_id}/summary", response_model=ReviewSummaryResponse)
def review_summary(restaurant_id: str) -> ReviewSummaryResponse:
    db = get_db()
    get_restaurant_by_id(db, restaurant_id)
    reviews = get_reviews_by_restaurant_id(db, restaurant_id)
    if not reviews:
        return ReviewSummaryResponse(summary=None, message="No reviews to summarize yet.")

    summary = summarize_reviews(reviews)
    if summary is None:
        return ReviewSummaryResponse(summary=None, message="Error summarizing reviews.")
    return ReviewSummaryResponse(summary=summary, message="Summarized with Groq")


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── User endpoints ───────────────────────────────────────────────────────


@app.post("/restaurants/{restaurant_id}/reviews", response_model=AddReviewResponse)
def add_review(
    restaurant_id: str,
    body: ReviewRequest,
    user_id: str = Depends(current_user_id),
) -> AddReviewResponse:
    db = get_db()
    review_id = add_review_to_restaurant(
        db,
        restaurant_id,
        {**body.model_dump(), "user_id": user_id},
    )
    restaurant = get_restaurant_by_id(db, restaurant_id)
    return AddReviewResponse(
        status="recorded",
        review_id=review_id,
        restaurant=RestaurantOut.from_document(restaurant),
    )


@app.post("/restaurants/{restaurant_id}/image", response_model=ImageUploadResponse)
def upload_restaurant_image(
    restaurant_id: str,
    file: UploadFile = File(...),
    user: dict = Depends(require_user),
) -> ImageUploadResponse:
    photo = update_restaurant_image(
        get_db(),
        restaurant_id,
        file.filename,
        file.file.read(),
        config=MEDIA_CONFIG,
    )
    return ImageUploadResponse(photo=photo)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.post("/seed")
def seed(
    count: int = QueryParam(DEFAULT_RESTAURANT_COUNT, ge=1, le=200),
    user: dict = Depends(require_admin),
) -> dict:
    added = add_fake_restaurants_and_reviews(get_db(), count)
    return {"status": "ok", "restaurants_added": added}


# ── Uploaded images ──────────────────────────────────────────────────────


app.mount(
    MEDIA_CONFIG.public_prefix,
    StaticFiles(directory=str(MEDIA_CONFIG.images_dir), check_dir=False),
    name="images",
)
