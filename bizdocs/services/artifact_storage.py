"""
Local filesystem object storage for generated documents.

Assemblers only return bytes; callers (the HTTP surface, scripts) decide
whether to persist them here. Failures propagate to the caller.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


logger = logging.getLogger("bizdocs.artifact_storage")


@dataclass(frozen=True)
class StoredArtifact:
    path: str
    public_url: Optional[str] = None
    byte_size: int = 0


def unique_document_name(prefix: str = "document", extension: str = "pdf") -> str:
    """`invoice-20250102T030405-1a2b3c4d.pdf`"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:8]}.{extension}"


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


class LocalArtifactStorage:
    def __init__(self, base_path: str, public_base_url: Optional[str] = None):
        self.base_path = base_path.rstrip("/") or "."
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _target(self, destination_name: str) -> str:
        rel = os.path.normpath(destination_name.replace("\\", "/")).lstrip("/")
        if not rel or rel == "." or rel.startswith(".."):
            raise ValueError(f"Invalid destination name: {destination_name!r}")
        return rel

    def upload(self, data: bytes, destination_name: str) -> StoredArtifact:
        """
        Write `data` under the storage root. Existing objects are never
        overwritten (FileExistsError).
        """
        rel = self._target(destination_name)
        path = os.path.join(self.base_path, rel)
        _ensure_dir(os.path.dirname(path) or ".")
        with open(path, "xb") as f:
            f.write(data)

        public_url = f"{self.public_base_url}/{rel}" if self.public_base_url else None
        logger.info("artifact_stored", extra={"path": path, "byte_size": len(data)})
        return StoredArtifact(path=path, public_url=public_url, byte_size=len(data))
