from __future__ import annotations

from pathlib import PurePath

from ..docstore.store import DocumentStore
from ..errors import InvalidArgument, NotFound
from ..restaurants.data_store import RESTAURANTS
from ..restaurants.queries import update_restaurant_image_reference
from .config import DEFAULT_MEDIA_CONFIG, MediaConfig


def _safe_filename(filename: str | None) -> str:
    name = PurePath(filename or "").name
    if not name or name in {".", ".."}:
        raise InvalidArgument("a valid image has not been provided")
    return name


def upload_image(
    restaurant_id: str,
    filename: str,
    content: bytes,
    config: MediaConfig = DEFAULT_MEDIA_CONFIG,
) -> str:
    """Write ``content`` to ``images/<restaurant_id>/<filename>`` and return its public URL."""
    name = _safe_filename(filename)
    target_dir = config.images_dir / restaurant_id
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / name).write_bytes(content)
    return f"{config.public_prefix}/{restaurant_id}/{name}"


def update_restaurant_image(
    db: DocumentStore,
    restaurant_id: str,
    filename: str | None,
    content: bytes | None,
    config: MediaConfig = DEFAULT_MEDIA_CONFIG,
) -> str:
    """Upload a new photo for the restaurant and return the URL now stored on it."""
    if not restaurant_id or PurePath(restaurant_id).name != restaurant_id:
        raise InvalidArgument("no restaurant ID provided")
    _safe_filename(filename)
    if not content:
        raise InvalidArgument("a valid image has not been provided")
    if len(content) > config.max_bytes:
        raise InvalidArgument(f"image is larger than {config.max_bytes} bytes")
    if not db.get(db.document(RESTAURANTS, restaurant_id)).exists:
        raise NotFound(f"restaurant {restaurant_id} does not exist")

    public_url = upload_image(restaurant_id, filename, content, config)
    update_restaurant_image_reference(db, restaurant_id, public_url)
    return public_url
