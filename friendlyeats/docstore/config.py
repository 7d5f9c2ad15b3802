from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreConfig:
    max_attempts: int = int(os.getenv("FRIENDLYEATS_TX_MAX_ATTEMPTS", "5"))
    id_length: int = 20


DEFAULT_STORE_CONFIG = StoreConfig()
