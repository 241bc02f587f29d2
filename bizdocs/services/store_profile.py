"""
Metadata source: the single `store` row mapped to an OrgProfile.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from bizdocs.models import Store
from bizdocs.schemas import OrgProfile


def split_address(raw: Optional[str]) -> List[str]:
    """Split a free-form address on newlines and commas into display lines."""
    if not raw:
        return []
    parts = re.split(r"\n|,\s*", raw)
    return [p.strip() for p in parts if p and p.strip()]


def profile_from_store(row: Store) -> OrgProfile:
    return OrgProfile(
        name=row.name,
        address_lines=split_address(row.address),
        phone=row.phone,
        email=row.email,
        website=row.website,
        gstin=row.gst_number,
        state=row.state,
        bank_name=row.bank_name,
        bank_account_number=row.bank_account_number,
        bank_ifsc=row.bank_ifsc_code,
        bank_branch=row.bank_branch,
        terms=row.terms,
        logo_url=row.logo_url,
    )


def load_org_profile(db: Session) -> Optional[OrgProfile]:
    row = db.query(Store).order_by(Store.id.asc()).first()
    if not row:
        return None
    return profile_from_store(row)


def make_profile_fetcher(session_factory: Callable[[], Session]) -> Callable[[], Optional[OrgProfile]]:
    """Zero-argument fetch callable for OrgProfileCache, one short session per call."""
    def fetch() -> Optional[OrgProfile]:
        db = session_factory()
        try:
            return load_org_profile(db)
        finally:
            db.close()

    return fetch
