"""Tests for service reconciliation steps."""

import pytest

from tutum_deploy.exceptions import DependencyNotFoundError, RemoteStateError, SettleTimeoutError
from tutum_deploy.models.remote import RemoteRecord
from tutum_deploy.reconcile import service as steps

CONFIG = """
clusters: []
services:
  - name: db
    image: postgres:16
    tags: [db]
  - name: web
    image: example/web
    build: ./web
    containers: 2
    ports: [8000]
    env: {MODE: prod}
    tags: [web, edge]
    require: [db]
"""


@pytest.fixture
def ctx(make_context):
    return make_context(CONFIG)


@pytest.fixture
def db(ctx):
    return ctx.config.get_service("db")


@pytest.fixture
def web(ctx):
    return ctx.config.get_service("web")


def test_fetch_missing_service(ctx, db):
    steps.fetch_service(ctx, db)

    assert db.remote is None


def test_fetch_skips_terminated_services(ctx, db, tutum):
    tutum.add_service("db", state="Terminated")
    active = tutum.add_service("db", state="Stopped")
    tutum.add_service("db", state="Running")

    steps.fetch_service(ctx, db)

    assert db.remote.uuid == active["uuid"]


def test_fetch_resolves_tags(ctx, web):
    ctx.tags.add("web", "/api/v1/nodecluster/c1/")

    steps.fetch_service(ctx, web)

    assert web.tag_refs == {"web": ["/api/v1/nodecluster/c1/"], "edge": []}


def test_create_links_required_services(ctx, db, web, tutum):
    db.remote = RemoteRecord(uuid="db-uuid", state="Running")

    steps.create_service(ctx, web)

    payload = tutum.payload("POST", "/service/")
    assert payload["linked_to_service"] == [{"to_service": "/api/v1/service/db-uuid/", "name": "db"}]
    assert payload["target_num_containers"] == 2
    assert payload["container_ports"] == [{"inner_port": 8000, "protocol": "tcp"}]
    assert payload["container_envvars"] == [{"key": "MODE", "value": "prod"}]
    assert payload["tags"] == [{"name": "web"}, {"name": "edge"}]
    for internal in ("build", "require", "remote", "tag_refs", "image_pushed", "started"):
        assert internal not in payload


def test_create_waits_for_settled_record(ctx, db, tutum):
    steps.create_service(ctx, db)

    uuid = db.remote.uuid
    assert db.remote.state == "Init"
    assert tutum.requests() == [("POST", "/service/"), ("GET", f"/service/{uuid}/")]
    ctx.sleep.assert_called_once()


def test_create_fails_without_dependency_record(ctx, web, tutum):
    with pytest.raises(DependencyNotFoundError) as exc_info:
        steps.create_service(ctx, web)

    assert "has no remote service" in exc_info.value.message
    assert tutum.calls == []


def test_create_fails_for_unknown_dependency(ctx, db):
    db.require = ["cache"]

    with pytest.raises(DependencyNotFoundError) as exc_info:
        steps.create_service(ctx, db)

    assert "unknown service cache" in exc_info.value.message


def test_create_fails_for_dependency_declared_later(ctx, db, web):
    web.remote = RemoteRecord(uuid="web-uuid", state="Running")
    db.require = ["web"]

    with pytest.raises(DependencyNotFoundError) as exc_info:
        steps.create_service(ctx, db)

    assert "declared after it" in exc_info.value.message


def test_create_skipped_when_service_exists(ctx, db, tutum):
    db.remote = RemoteRecord(uuid="db-uuid", state="Running")

    steps.create_service(ctx, db)

    assert tutum.calls == []


@pytest.mark.parametrize("state", ["Init", "Stopped", "Not running"])
def test_start_from_startable_state(ctx, db, tutum, state):
    record = tutum.add_service("db", state=state)
    db.remote = RemoteRecord.model_validate(record)

    steps.start_service(ctx, db)

    assert tutum.mutating() == [("POST", f"/service/{record['uuid']}/start/")]
    assert db.remote.state == "Running"
    assert db.started is True


def test_start_skipped_when_running(ctx, db, tutum):
    db.remote = RemoteRecord(uuid="db-uuid", state="Running")

    steps.start_service(ctx, db)

    assert tutum.calls == []
    assert db.started is False


def test_start_fails_when_service_stops(ctx, db, tutum):
    record = tutum.add_service("db", state="Init")
    db.remote = RemoteRecord.model_validate(record)
    tutum.fail("POST", f"/service/{record['uuid']}/start/", status=202, text="{}")
    record["state"] = "Stopped"

    with pytest.raises(RemoteStateError):
        steps.start_service(ctx, db)


def test_start_waits_out_stale_stopped_read(ctx, db, tutum):
    record = tutum.add_service("db", state="Stopped")
    db.remote = RemoteRecord.model_validate(record)
    tutum.fail("POST", f"/service/{record['uuid']}/start/", status=202, text="{}")

    def settle(delay):
        if ctx.sleep.call_count == 2:
            record["state"] = "Running"

    ctx.sleep.side_effect = settle

    steps.start_service(ctx, db)

    assert db.remote.state == "Running"
    assert tutum.requests("GET") == [("GET", f"/service/{record['uuid']}/")] * 2


def test_start_times_out(ctx, db, tutum):
    record = tutum.add_service("db", state="Init")
    db.remote = RemoteRecord.model_validate(record)
    tutum.fail("POST", f"/service/{record['uuid']}/start/", status=202, text="{}")
    record["state"] = "Scaling"

    with pytest.raises(SettleTimeoutError):
        steps.start_service(ctx, db)

    assert ctx.sleep.call_count == ctx.settle.attempts


def test_update_sends_only_tags(ctx, web, tutum):
    record = tutum.add_service("web")
    web.remote = RemoteRecord.model_validate(record)

    steps.update_service(ctx, web)

    assert tutum.payload("PATCH", f"/service/{record['uuid']}/") == {
        "tags": [{"name": "web"}, {"name": "edge"}]
    }


def test_redeploy_after_image_push(ctx, web, tutum):
    record = tutum.add_service("web", state="Running")
    web.remote = RemoteRecord.model_validate(record)
    web.image_pushed = True

    steps.redeploy_service(ctx, web)

    assert tutum.mutating() == [("POST", f"/service/{record['uuid']}/redeploy/")]


def test_redeploy_forced(ctx, web, tutum):
    ctx.force_redeploy = True
    record = tutum.add_service("web", state="Running")
    web.remote = RemoteRecord.model_validate(record)

    steps.redeploy_service(ctx, web)

    assert len(tutum.mutating()) == 1


def test_no_redeploy_without_new_image(ctx, web, tutum):
    web.remote = RemoteRecord(uuid="web-uuid", state="Running")

    steps.redeploy_service(ctx, web)

    assert tutum.calls == []


def test_no_redeploy_when_not_running(ctx, web, tutum):
    web.remote = RemoteRecord(uuid="web-uuid", state="Stopped")
    web.image_pushed = True

    steps.redeploy_service(ctx, web)

    assert tutum.calls == []


def test_no_redeploy_after_fresh_start(ctx, web, tutum):
    web.remote = RemoteRecord(uuid="web-uuid", state="Running")
    web.image_pushed = True
    web.started = True

    steps.redeploy_service(ctx, web)

    assert tutum.calls == []
