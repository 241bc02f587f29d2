"""
Environment-driven configuration for the document engine and its HTTP surface.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple


@dataclass(frozen=True)
class EngineConfig:
    profile_ttl: timedelta
    asset_dir: str
    default_watermark: Optional[str]
    fetch_timeout_seconds: float
    storage_base_path: str
    public_base_url: Optional[str]
    # Hosts API clients may name in a remote watermark URI.
    watermark_hosts: Tuple[str, ...] = ()


def load_config() -> EngineConfig:
    ttl_seconds = int(os.getenv("BIZDOCS_PROFILE_TTL_SECONDS", "300") or "300")
    asset_dir = os.getenv("BIZDOCS_ASSET_DIR", "./assets").rstrip("/")
    default_watermark = (os.getenv("BIZDOCS_WATERMARK") or "").strip() or None
    fetch_timeout = float(os.getenv("BIZDOCS_FETCH_TIMEOUT", "10") or "10")
    storage_base_path = os.getenv("BIZDOCS_STORAGE_PATH", "./documents").rstrip("/")
    public_base_url = (os.getenv("BIZDOCS_PUBLIC_BASE_URL") or "").strip().rstrip("/") or None
    watermark_hosts = tuple(
        h.strip().lower() for h in (os.getenv("BIZDOCS_WATERMARK_HOSTS") or "").split(",") if h.strip()
    )
    return EngineConfig(
        profile_ttl=timedelta(seconds=ttl_seconds),
        asset_dir=asset_dir,
        default_watermark=default_watermark,
        fetch_timeout_seconds=fetch_timeout,
        storage_base_path=storage_base_path,
        public_base_url=public_base_url,
        watermark_hosts=watermark_hosts,
    )
