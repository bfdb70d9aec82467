"""Integration tests for the tracking endpoint."""

import pytest


def event(route="/api/users/:id", method="GET", status=200, **extra):
    item = {"method": method, "route": route, "statusCode": status}
    item.update(extra)
    return item


class TestTrackRouter:
    async def test_track_single_event(self, client, create_project):
        _, headers = await create_project()
        resp = await client.post("/track", json=event(latency=12.5), headers=headers)
        assert resp.status_code == 202
        assert resp.json() == {"success": True, "message": "Accepted 1 log(s)", "count": 1}

    async def test_track_batch(self, client, create_project, flush_writes):
        project_id, headers = await create_project()
        resp = await client.post("/track", json=[
            event("/a"), event("/b", method="post", status=201), event("/a"),
        ], headers=headers)
        assert resp.status_code == 202
        assert resp.json()["count"] == 3

        await flush_writes()
        usage = await client.get(f"/projects/{project_id}/usage", headers=headers)
        assert usage.json()["event_count"] == 3
        assert usage.json()["distinct_routes"] == 2

    async def test_bearer_token_accepted(self, client, create_project):
        _, headers = await create_project()
        resp = await client.post("/track", json=event(), headers={
            "Authorization": f"Bearer {headers['X-API-Key']}",
        })
        assert resp.status_code == 202

    async def test_missing_api_key(self, client):
        resp = await client.post("/track", json=event())
        assert resp.status_code == 401

    async def test_unknown_api_key(self, client):
        resp = await client.post("/track", json=event(), headers={"X-API-Key": "cp_nope"})
        assert resp.status_code == 401

    async def test_admin_key_cannot_track(self, client, admin_headers):
        resp = await client.post("/track", json=event(), headers=admin_headers)
        assert resp.status_code == 401

    async def test_inactive_project_rejected(self, client, create_project, super_admin_headers):
        project_id, headers = await create_project()
        await client.patch(f"/tenants/{project_id}", json={"active": False}, headers=super_admin_headers)
        resp = await client.post("/track", json=event(), headers=headers)
        assert resp.status_code == 401

    async def test_invalid_item_rejects_batch(self, client, create_project, flush_writes):
        project_id, headers = await create_project()
        resp = await client.post("/track", json=[
            event("/a"), event("/b", status=999),
        ], headers=headers)
        assert resp.status_code == 400
        data = resp.json()
        assert data["code"] == "INVALID_PAYLOAD"
        assert data["index"] == 1
        assert data["field"] == "statusCode"

        await flush_writes()
        usage = await client.get(f"/projects/{project_id}/usage", headers=headers)
        assert usage.json()["event_count"] == 0

    async def test_empty_batch_rejected(self, client, create_project):
        _, headers = await create_project()
        resp = await client.post("/track", json=[], headers=headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_PAYLOAD"

    @pytest.mark.parametrize("body", [b"null", b"not json", b"", b"\"str\""])
    async def test_unusable_body_rejected(self, client, create_project, body):
        _, headers = await create_project()
        resp = await client.post("/track", content=body, headers={
            **headers, "Content-Type": "application/json",
        })
        assert resp.status_code == 400
        data = resp.json()
        assert data["code"] == "INVALID_PAYLOAD"
        assert data["index"] is None
        assert data["field"] is None

    @pytest.mark.parametrize("field", ["method", "route", "statusCode"])
    async def test_missing_field(self, client, create_project, field):
        _, headers = await create_project()
        item = event()
        del item[field]
        resp = await client.post("/track", json=item, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["field"] == field

    async def test_free_plan_route_limit(self, client, create_project, flush_writes):
        project_id, headers = await create_project()
        resp = await client.post("/track", json=[event(f"/known/{i}") for i in range(48)], headers=headers)
        assert resp.json()["count"] == 48
        await flush_writes()

        resp = await client.post("/track", json=[
            event(f"/new/{i}") for i in range(5)
        ] + [event("/known/3")], headers=headers)
        assert resp.status_code == 202
        assert resp.json()["count"] == 3
        assert resp.json()["message"] == "Accepted 3 log(s)"

        await flush_writes()
        usage = await client.get(f"/projects/{project_id}/usage", headers=headers)
        assert usage.json()["distinct_routes"] == 50
        assert usage.json()["max_distinct_routes"] == 50

    async def test_pro_plan_unlimited(self, client, create_project, flush_writes):
        project_id, headers = await create_project(plan="pro")
        resp = await client.post("/track", json=[event(f"/r/{i}") for i in range(80)], headers=headers)
        assert resp.json()["count"] == 80

        await flush_writes()
        usage = await client.get(f"/projects/{project_id}/usage", headers=headers)
        assert usage.json()["distinct_routes"] == 80
        assert usage.json()["max_distinct_routes"] is None
        assert usage.json()["retention_days"] == 90
