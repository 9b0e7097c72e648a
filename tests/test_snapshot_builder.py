"""
Tests for the parallel snapshot builder.
"""
import pytest

from conftest import FakeConfigStoreClient, make_object
from xc_auditor.core.cancellation import CancellationToken
from xc_auditor.core.exceptions import AuditAbortedError, SnapshotFetchError
from xc_auditor.models.enums import NAMESPACED_OBJECT_TYPES, AuditPhase, ObjectType
from xc_auditor.services.snapshot_builder import SnapshotBuilder


def test_build_keys_objects_by_namespace_and_name(fake_store):
    context = SnapshotBuilder(fake_store, max_workers=4).build(["default"])

    assert set(context.objects(ObjectType.HTTP_LOADBALANCER)) == {"default/secure-lb", "default/plain-lb"}
    assert context.get_app_firewall("default", "blocking-waf") is not None
    assert context.get_origin_pool("default", "backend")["spec"]["port"] == 443
    assert context.tenant == "acme"


def test_global_log_receivers_fetched_once_from_shared_namespace(fake_store):
    context = SnapshotBuilder(fake_store, max_workers=4).build(["default", "prod"])

    assert context.count(ObjectType.GLOBAL_LOG_RECEIVER) == 1
    glr_calls = [call for call in fake_store.list_calls if call[1] == ObjectType.GLOBAL_LOG_RECEIVER]
    assert glr_calls == [("shared", ObjectType.GLOBAL_LOG_RECEIVER)]


def test_every_namespaced_type_is_listed_per_namespace(fake_store):
    SnapshotBuilder(fake_store, max_workers=4).build(["default", "prod", "default"])

    for namespace in ("default", "prod"):
        listed = {t for ns, t in fake_store.list_calls if ns == namespace}
        assert listed == set(NAMESPACED_OBJECT_TYPES)
    # Duplicate namespaces are fetched once
    assert len([c for c in fake_store.list_calls if c == ("default", ObjectType.ORIGIN_POOL)]) == 1


def test_snapshot_counts_cover_every_object_type(fake_store):
    counts = SnapshotBuilder(fake_store).build(["default"]).snapshot_counts()

    assert set(counts) == {object_type.value for object_type in ObjectType}
    assert counts["http_loadbalancer"] == 2
    assert counts["healthcheck"] == 0


def test_failed_listing_only_drops_its_own_slice(fake_store):
    fake_store.fail_list.add(("default", ObjectType.APP_FIREWALL))

    context = SnapshotBuilder(fake_store).build(["default"])

    assert context.count(ObjectType.APP_FIREWALL) == 0
    assert context.count(ObjectType.HTTP_LOADBALANCER) == 2
    assert context.count(ObjectType.ORIGIN_POOL) == 1


def test_failed_get_keeps_list_entry(fake_store):
    fake_store.fail_get.add(("default", ObjectType.ORIGIN_POOL, "backend"))

    context = SnapshotBuilder(fake_store).build(["default"])

    pool = context.get_origin_pool("default", "backend")
    assert pool is not None
    assert pool["metadata"] == {"name": "backend", "namespace": "default"}
    assert "spec" not in pool


def test_every_listing_failing_raises_snapshot_fetch_error():
    store = FakeConfigStoreClient()
    store.fail_list.update((ns, t) for ns in ("default", "shared") for t in ObjectType)

    with pytest.raises(SnapshotFetchError) as exc_info:
        SnapshotBuilder(store).build(["default"])

    # 9 namespaced listings plus the global log receiver listing
    assert len(exc_info.value.errors) == len(NAMESPACED_OBJECT_TYPES) + 1


def test_missing_namespace_is_assigned_from_listing():
    store = FakeConfigStoreClient()
    pool = store.add("prod", ObjectType.ORIGIN_POOL, {"metadata": {"name": "api"}, "spec": {}})

    context = SnapshotBuilder(store).build(["prod"])

    fetched = context.get_origin_pool("prod", "api")
    assert fetched["metadata"]["namespace"] == "prod"
    # Source object is not mutated
    assert "namespace" not in pool["metadata"]


def test_shared_object_visible_from_two_namespaces_is_kept_once():
    store = FakeConfigStoreClient()
    shared_waf = make_object("common-waf", "shared", blocking={})
    store.add("team-a", ObjectType.APP_FIREWALL, shared_waf)
    store.add("team-b", ObjectType.APP_FIREWALL, shared_waf)

    context = SnapshotBuilder(store).build(["team-a", "team-b"])

    assert list(context.objects(ObjectType.APP_FIREWALL)) == ["shared/common-waf"]


def test_fetch_progress_reports_each_namespace():
    store = FakeConfigStoreClient()
    events = []

    SnapshotBuilder(store, max_workers=2).build(["a", "b", "c", "d"], on_progress=events.append)

    assert [e.phase for e in events] == [AuditPhase.FETCHING] * 4
    assert [e.progress for e in events] == [5, 10, 15, 20]
    assert {e.current_namespace for e in events} == {"a", "b", "c", "d"}


def test_cancelled_token_aborts_before_fetching():
    store = FakeConfigStoreClient()
    token = CancellationToken()
    token.cancel()

    with pytest.raises(AuditAbortedError):
        SnapshotBuilder(store).build(["default"], token=token)


def test_cancel_during_fetch_raises_aborted():
    store = FakeConfigStoreClient()
    store.add("default", ObjectType.HTTP_LOADBALANCER, make_object("lb", "default"))
    token = CancellationToken()

    def cancel_on_first_listing(namespace, object_type):
        token.cancel()

    store.on_list = cancel_on_first_listing

    with pytest.raises(AuditAbortedError):
        SnapshotBuilder(store, max_workers=1).build(["default", "prod"], token=token)
