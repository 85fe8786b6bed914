"""Tests for table provisioning over the RPC endpoint and a direct connection."""

import json

import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from soloflow.db.session import engine
from soloflow.services import provisioning_service


def _client(handler) -> httpx.Client:
    return provisioning_service.build_admin_client(
        "https://project.supabase.test/",
        "service-key",
        transport=httpx.MockTransport(handler),
    )


def test_statements_cover_every_table_in_dependency_order():
    assert provisioning_service.TABLE_NAMES == [
        "users",
        "user_profiles",
        "projects",
        "services",
        "activities",
        "content_generations",
        "social_posts",
    ]
    for table, sql in provisioning_service.TABLE_STATEMENTS:
        assert f"CREATE TABLE IF NOT EXISTS {table} " in sql


def test_rpc_failures_are_logged_and_skipped():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/v1/rpc/exec_sql"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"
        sql = json.loads(request.content)["sql"]
        seen.append(sql)
        if "EXISTS services " in sql:
            return httpx.Response(500, json={"message": "boom"})
        return httpx.Response(200, json=None)

    with _client(handler) as client:
        results = provisioning_service.create_tables_via_rpc(client)

    # Every statement is still attempted after the failure
    assert len(seen) == 7
    assert [r.table for r in results if not r.ok] == ["services"]
    assert results[3].detail == "HTTP 500"


def test_rpc_transport_errors_do_not_abort():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with _client(handler) as client:
        results = provisioning_service.create_tables_via_rpc(client)

    assert len(results) == 7
    assert not any(r.ok for r in results)


def test_rest_probe_reports_present_missing_and_error():
    def handler(request: httpx.Request) -> httpx.Response:
        table = request.url.path.rsplit("/", 1)[-1]
        assert request.url.params["limit"] == "1"
        if table == "social_posts":
            return httpx.Response(404, json={"message": "relation does not exist"})
        if table == "activities":
            return httpx.Response(401)
        return httpx.Response(200, json=[])

    with _client(handler) as client:
        results = {r.table: r for r in provisioning_service.check_tables_via_rest(client)}

    assert results["users"].ok
    assert results["social_posts"].detail == "missing"
    assert results["activities"].detail == "HTTP 401"


def test_direct_probe_against_live_schema(db: Session):
    results = provisioning_service.check_tables_direct(engine)
    assert all(r.ok for r in results)


def test_direct_create_continues_past_failures(tmp_path):
    # SQLite rejects the Postgres DDL; each failure is reported, none raise
    scratch = create_engine(f"sqlite:///{tmp_path / 'scratch.db'}")

    results = provisioning_service.create_tables_direct(scratch)
    probes = provisioning_service.check_tables_direct(scratch)

    assert len(results) == 7
    assert not any(r.ok for r in results)
    assert not any(p.ok for p in probes)
    scratch.dispose()
