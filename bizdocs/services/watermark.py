"""
Watermark embedding for generated documents.

A watermark reference is resolved to bytes, decoded, and scaled to fit within
65% of the page in both directions. Every failure along the way is logged and
turns into "no watermark"; a missing or broken logo never stops a document.

Supported references:
- raw `bytes`
- `http://` / `https://` URIs (fetched with requests)
- `bundled:<name>` or a relative path, resolved under the asset directory
  and never allowed to leave it
- an absolute filesystem path or `file://` URI (in-process callers only)

References arriving from API clients go through `client_watermark_ref`
first: local refs must stay relative and remote URIs must name an allowed
host.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union
from urllib.parse import urlparse

import requests
from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from bizdocs.services.theme import PAGE_SIZE


logger = logging.getLogger("bizdocs.watermark")

WATERMARK_SCALE = 0.65
WATERMARK_OPACITY = 0.1

WatermarkRef = Union[str, bytes]


@dataclass(frozen=True)
class WatermarkAsset:
    """Decoded image plus its natural size in pixels."""
    image: Image.Image
    width: int
    height: int


@dataclass(frozen=True)
class WatermarkHandle:
    image: ImageReader
    x: float
    y: float
    width: float
    height: float
    opacity: float = WATERMARK_OPACITY

    def draw(self, pdf: Canvas) -> None:
        pdf.saveState()
        pdf.setFillAlpha(self.opacity)
        pdf.setStrokeAlpha(self.opacity)
        pdf.drawImage(self.image, self.x, self.y, width=self.width, height=self.height, mask="auto")
        pdf.restoreState()


def fit_to_page(img_width: float, img_height: float, page_width: float, page_height: float) -> Tuple[float, float, float, float]:
    """
    Uniform scale into 65% of the page, centred.

    Returns (x, y, width, height).
    """
    scale = min(
        (page_width * WATERMARK_SCALE) / img_width,
        (page_height * WATERMARK_SCALE) / img_height,
    )
    w = img_width * scale
    h = img_height * scale
    return (page_width - w) / 2, (page_height - h) / 2, w, h


def _resolve_local_path(ref: str, asset_dir: str) -> Optional[str]:
    """Filesystem path for `ref`, or None when a bundled/relative ref escapes `asset_dir`."""
    if ref.startswith("file://"):
        return ref[len("file://"):]
    if os.path.isabs(ref):
        return ref
    name = ref[len("bundled:"):].lstrip("/") if ref.startswith("bundled:") else ref
    root = os.path.realpath(asset_dir)
    path = os.path.realpath(os.path.join(root, name))
    if os.path.commonpath([root, path]) != root:
        return None
    return path


def client_watermark_ref(ref: Optional[str], allowed_hosts: Iterable[str] = ()) -> Optional[str]:
    """
    Narrow a watermark reference supplied by an API client.

    Only `bundled:` names, relative asset paths and http(s) URIs whose host is
    in `allowed_hosts` pass through. Absolute paths, `file://` and any other
    scheme are logged and dropped.
    """
    ref = (ref or "").strip()
    if not ref:
        return None
    if ref.startswith(("http://", "https://")):
        host = (urlparse(ref).hostname or "").lower()
        allowed = {h.strip().lower() for h in allowed_hosts if h.strip()}
        if host and host in allowed:
            return ref
        logger.warning("watermark_host_rejected", extra={"ref": ref, "host": host})
        return None
    if "://" in ref or os.path.isabs(ref):
        logger.warning("watermark_ref_rejected", extra={"ref": ref})
        return None
    return ref


def load_watermark_bytes(
    source_ref: WatermarkRef,
    asset_dir: str = ".",
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> Optional[bytes]:
    if isinstance(source_ref, (bytes, bytearray)):
        return bytes(source_ref)

    ref = (source_ref or "").strip()
    if not ref:
        return None

    if ref.startswith(("http://", "https://")):
        try:
            if session is not None:
                resp = session.get(ref, timeout=timeout)
            else:
                with requests.Session() as http:
                    resp = http.get(ref, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("watermark_fetch_failed", extra={"ref": ref, "error": str(e)})
            return None
        return resp.content

    path = _resolve_local_path(ref, asset_dir)
    if path is None:
        logger.warning("watermark_outside_asset_dir", extra={"ref": ref, "asset_dir": asset_dir})
        return None
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.warning("watermark_read_failed", extra={"ref": ref, "path": path, "error": str(e)})
        return None


def decode_watermark(data: bytes) -> Optional[WatermarkAsset]:
    if not data:
        logger.warning("watermark_empty_bytes")
        return None
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        logger.warning("watermark_decode_failed", extra={"error": str(e), "byte_size": len(data)})
        return None
    width, height = img.size
    if width <= 0 or height <= 0:
        logger.warning("watermark_zero_size")
        return None
    return WatermarkAsset(image=img, width=width, height=height)


def embed_watermark(
    source_ref: Optional[WatermarkRef],
    page_size: Tuple[float, float] = PAGE_SIZE,
    asset_dir: str = ".",
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
    opacity: float = WATERMARK_OPACITY,
) -> Optional[WatermarkHandle]:
    """
    Resolve and decode `source_ref` into a drawable handle, or None.

    None covers both "no watermark requested" and any fetch/decode failure;
    callers simply skip the watermark layer.
    """
    if source_ref is None:
        return None
    data = load_watermark_bytes(source_ref, asset_dir=asset_dir, session=session, timeout=timeout)
    if data is None:
        return None
    asset = decode_watermark(data)
    if asset is None:
        return None

    page_w, page_h = page_size
    x, y, w, h = fit_to_page(asset.width, asset.height, page_w, page_h)
    return WatermarkHandle(image=ImageReader(asset.image), x=x, y=y, width=w, height=h, opacity=opacity)
