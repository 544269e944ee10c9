import uuid

import pytest

from orgdesk.models.enums import OrgRole, Plan
from orgdesk.permissions.cache import CacheScope, LayerCache

class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

ORG_A = uuid.uuid4()
ORG_B = uuid.uuid4()

def scope(org=ORG_A, role=OrgRole.employee, plan=Plan.free) -> CacheScope:
    return CacheScope(organization_id=org, role=role, plan=plan)

class CountingLoader:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"snapshot-{self.calls}"

def test_hit_within_ttl_does_not_reload():
    clock = FakeClock()
    cache = LayerCache(ttl_seconds=60, clock=clock)
    loader = CountingLoader()

    assert cache.get_or_load(scope(), loader) == "snapshot-1"
    clock.advance(59)
    assert cache.get_or_load(scope(), loader) == "snapshot-1"
    assert loader.calls == 1

def test_reload_after_ttl():
    clock = FakeClock()
    cache = LayerCache(ttl_seconds=60, clock=clock)
    loader = CountingLoader()

    cache.get_or_load(scope(), loader)
    clock.advance(60)
    assert cache.get(scope()) is None
    assert cache.get_or_load(scope(), loader) == "snapshot-2"

def test_scopes_are_independent():
    cache = LayerCache(ttl_seconds=60, clock=FakeClock())
    cache.put(scope(role=OrgRole.employee), "e")
    cache.put(scope(role=OrgRole.manager), "m")
    cache.put(scope(plan=Plan.pro), "p")

    assert cache.get(scope(role=OrgRole.employee)) == "e"
    assert cache.get(scope(role=OrgRole.manager)) == "m"
    assert cache.get(scope(plan=Plan.pro)) == "p"
    assert len(cache) == 3

def test_invalidate_one_scope():
    cache = LayerCache(ttl_seconds=60, clock=FakeClock())
    cache.put(scope(role=OrgRole.employee), "e")
    cache.put(scope(role=OrgRole.manager), "m")

    cache.invalidate(scope(role=OrgRole.employee))
    assert cache.get(scope(role=OrgRole.employee)) is None
    assert cache.get(scope(role=OrgRole.manager)) == "m"

def test_invalidate_org_leaves_other_orgs():
    cache = LayerCache(ttl_seconds=60, clock=FakeClock())
    cache.put(scope(org=ORG_A), "a1")
    cache.put(scope(org=ORG_A, role=OrgRole.owner), "a2")
    cache.put(scope(org=ORG_B), "b")

    cache.invalidate_org(ORG_A)
    assert len(cache) == 1
    assert cache.get(scope(org=ORG_B)) == "b"

def test_write_then_read_sees_new_value():
    cache = LayerCache(ttl_seconds=60, clock=FakeClock())
    values = iter(["before", "after"])

    assert cache.get_or_load(scope(), lambda: next(values)) == "before"
    cache.clear()
    assert cache.get_or_load(scope(), lambda: next(values)) == "after"

def test_failed_reload_serves_last_good_snapshot():
    clock = FakeClock()
    cache = LayerCache(ttl_seconds=60, clock=clock)
    cache.put(scope(), "good")
    clock.advance(120)

    def broken():
        raise RuntimeError("db down")

    assert cache.get_or_load(scope(), broken) == "good"

def test_failed_load_without_snapshot_raises():
    cache = LayerCache(ttl_seconds=60, clock=FakeClock())

    def broken():
        raise RuntimeError("db down")

    with pytest.raises(RuntimeError):
        cache.get_or_load(scope(), broken)
    assert len(cache) == 0
