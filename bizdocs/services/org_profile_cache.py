"""
Process-wide cache of the issuing organization's profile (5 minute TTL).

A failed refresh keeps serving the last known profile, so document generation
is only short of a profile when one has never been fetched. There is no lock:
two callers that both see a stale entry may both refresh; the last write wins
and both read the same underlying row.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from bizdocs.schemas import OrgProfile


logger = logging.getLogger("bizdocs.org_profile_cache")

FRESH_TTL = timedelta(minutes=5)

PLACEHOLDER_NAME = "Company Name"

DEFAULT_TERMS = (
    "We declare that this invoice shows the actual price of the goods described and that all "
    "particulars are true and correct.\n"
    "NOTE:- The invoice amount is to be paid to the mentioned company bank account in this invoice. "
    "Amount paid to any other account will not be accepted."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_fresh(fetched_at: Optional[datetime], now: datetime, ttl: timedelta = FRESH_TTL) -> bool:
    if not fetched_at:
        return False
    return (now - fetched_at) < ttl


class CacheState(enum.Enum):
    EMPTY = "empty"
    VALID = "valid"
    STALE = "stale"


class OrgProfileCache:
    def __init__(
        self,
        fetch: Callable[[], Optional[OrgProfile]],
        ttl: timedelta = FRESH_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._fetch = fetch
        self.ttl = ttl
        self._clock = clock
        self._value: Optional[OrgProfile] = None
        self._fetched_at: Optional[datetime] = None

    @property
    def state(self) -> CacheState:
        if self._value is None:
            return CacheState.EMPTY
        if is_fresh(self._fetched_at, self._clock(), self.ttl):
            return CacheState.VALID
        return CacheState.STALE

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._fetched_at

    def get(self, force_refresh: bool = False) -> Optional[OrgProfile]:
        """
        Return the cached profile, refreshing it first when empty, expired or forced.

        Returns None only if no fetch has ever succeeded.
        """
        now = self._clock()
        if not force_refresh and self._value is not None and is_fresh(self._fetched_at, now, self.ttl):
            return self._value

        try:
            fresh = self._fetch()
        except Exception as e:
            logger.warning(
                "org_profile_refresh_failed",
                extra={"error": str(e), "has_stale_value": self._value is not None},
            )
            return self._value

        if fresh is None:
            logger.warning("org_profile_missing", extra={"has_stale_value": self._value is not None})
            return self._value

        self._value = fresh
        self._fetched_at = now
        return self._value

    def invalidate(self) -> None:
        self._fetched_at = None


def placeholder_profile() -> OrgProfile:
    return OrgProfile(name=PLACEHOLDER_NAME, terms=DEFAULT_TERMS, is_placeholder=True)


def resolve_org_profile(
    override: Optional[OrgProfile] = None,
    cache: Optional[OrgProfileCache] = None,
) -> OrgProfile:
    """Explicit override, else the cached profile, else a placeholder."""
    if override is not None:
        return override
    profile = cache.get() if cache is not None else None
    if profile is None:
        logger.warning("org_profile_placeholder_used")
        return placeholder_profile()
    if not profile.terms:
        profile = profile.model_copy(update={"terms": DEFAULT_TERMS})
    return profile
