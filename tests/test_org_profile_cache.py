from datetime import datetime, timedelta, timezone

from bizdocs.schemas import OrgProfile
from bizdocs.services.org_profile_cache import (
    DEFAULT_TERMS,
    FRESH_TTL,
    PLACEHOLDER_NAME,
    CacheState,
    OrgProfileCache,
    is_fresh,
    resolve_org_profile,
)


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class ScriptedFetch:
    """Returns queued results in order; exceptions in the queue are raised."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if self.results else None
        if isinstance(result, Exception):
            raise result
        return result


def _profile(name="Acme Traders"):
    return OrgProfile(name=name, terms="Pay within 15 days.")


def test_is_fresh_window_is_five_minutes():
    now = datetime(2025, 3, 1, 12, 0, 0)
    assert FRESH_TTL == timedelta(minutes=5)
    assert is_fresh(now - timedelta(minutes=4, seconds=59), now) is True
    assert is_fresh(now - timedelta(minutes=5), now) is False
    assert is_fresh(None, now) is False


def test_get_within_ttl_does_not_refetch():
    clock = FakeClock()
    fetch = ScriptedFetch(_profile())
    cache = OrgProfileCache(fetch, clock=clock)

    assert cache.get().name == "Acme Traders"
    clock.advance(minutes=4)
    assert cache.get().name == "Acme Traders"
    assert fetch.calls == 1
    assert cache.state == CacheState.VALID


def test_get_after_ttl_triggers_exactly_one_fetch():
    clock = FakeClock()
    fetch = ScriptedFetch(_profile("Old"), _profile("New"))
    cache = OrgProfileCache(fetch, clock=clock)
    cache.get()

    clock.advance(minutes=5, seconds=1)
    assert cache.state == CacheState.STALE
    assert cache.get().name == "New"
    assert cache.get().name == "New"
    assert fetch.calls == 2


def test_failed_refresh_returns_previous_value_unchanged():
    clock = FakeClock()
    fetch = ScriptedFetch(_profile("Old"), RuntimeError("db down"), None)
    cache = OrgProfileCache(fetch, clock=clock)
    first = cache.get()
    fetched_at = cache.fetched_at

    clock.advance(minutes=10)
    assert cache.get() is first
    assert cache.get() is first
    assert cache.fetched_at == fetched_at
    assert cache.state == CacheState.STALE


def test_never_fetched_and_failing_returns_none():
    cache = OrgProfileCache(ScriptedFetch(RuntimeError("boom")), clock=FakeClock())
    assert cache.get() is None
    assert cache.state == CacheState.EMPTY


def test_force_refresh_bypasses_ttl():
    fetch = ScriptedFetch(_profile("A"), _profile("B"))
    cache = OrgProfileCache(fetch, clock=FakeClock())
    cache.get()
    assert cache.get(force_refresh=True).name == "B"
    assert fetch.calls == 2


def test_invalidate_forces_next_get_to_fetch():
    fetch = ScriptedFetch(_profile("A"), _profile("B"))
    cache = OrgProfileCache(fetch, clock=FakeClock())
    cache.get()
    cache.invalidate()
    assert cache.get().name == "B"


def test_resolve_prefers_override_then_cache_then_placeholder(caplog):
    cache = OrgProfileCache(ScriptedFetch(_profile("Cached")), clock=FakeClock())
    assert resolve_org_profile(_profile("Override"), cache).name == "Override"
    assert resolve_org_profile(None, cache).name == "Cached"

    caplog.set_level("WARNING", logger="bizdocs.org_profile_cache")
    placeholder = resolve_org_profile(None, None)
    assert placeholder.name == PLACEHOLDER_NAME
    assert placeholder.is_placeholder is True
    assert placeholder.terms == DEFAULT_TERMS
    assert any(r.getMessage() == "org_profile_placeholder_used" for r in caplog.records)


def test_resolve_fills_missing_terms_without_touching_cached_value():
    cached = OrgProfile(name="No Terms Ltd")
    cache = OrgProfileCache(ScriptedFetch(cached), clock=FakeClock())
    resolved = resolve_org_profile(None, cache)
    assert resolved.terms == DEFAULT_TERMS
    assert cache.get().terms is None
