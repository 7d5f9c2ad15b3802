from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MediaConfig:
    images_dir: Path = Path(
        os.getenv(
            "FRIENDLYEATS_IMAGES_DIR",
            str(Path(__file__).resolve().parent.parent / "data" / "images"),
        )
    )
    public_prefix: str = "/images"
    max_bytes: int = 5 * 1024 * 1024


DEFAULT_MEDIA_CONFIG = MediaConfig()
