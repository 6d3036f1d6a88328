"""Shared fixtures for integration tests.

Integration tests run the full engine over real HTTP against a local
aiohttp application, so no network access is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

DEVICE_TOTAL = 7
TOKEN = "integration-token"


def _authorized(request: web.Request) -> bool:
    return request.headers.get("Authorization") == f"Bearer {TOKEN}"


def build_app(log: list[tuple[str, object]]) -> web.Application:
    app = web.Application()

    async def token(request: web.Request) -> web.Response:
        form = await request.post()
        if form.get("client_secret") != "secret":
            return web.json_response({"errors": [{"code": 401, "message": "access denied"}]}, status=401)
        return web.json_response({"access_token": TOKEN, "expires_in": 1799}, status=201)

    async def query_devices(request: web.Request) -> web.Response:
        log.append(("query", request.rel_url.raw_query_string))
        if not _authorized(request):
            return web.json_response({"errors": [{"code": 401, "message": "access denied"}]}, status=401)
        offset = int(request.query.get("offset", 0))
        limit = int(request.query.get("limit", 100))
        ids = [f"dev-{n}" for n in range(offset, min(offset + limit, DEVICE_TOTAL))]
        meta = {"trace_id": "tr-1", "pagination": {"offset": offset, "limit": limit, "total": DEVICE_TOTAL}}
        return web.json_response({"meta": meta, "resources": ids, "errors": []})

    async def device_details(request: web.Request) -> web.Response:
        ids = request.query.getall("ids", [])
        log.append(("details", len(ids)))
        resources = [{"device_id": i, "hostname": f"host-{i}"} for i in ids if i != "dev-missing"]
        errors = [{"code": 404, "message": f"{i} not found"} for i in ids if i == "dev-missing"]
        return web.json_response({"meta": {"trace_id": "tr-2"}, "resources": resources, "errors": errors})

    async def delete_devices(request: web.Request) -> web.Response:
        ids = request.query.getall("ids", [])
        log.append(("delete", len(ids)))
        return web.json_response({"meta": {"writes": {"resources_affected": len(ids)}}, "resources": None})

    async def upload(request: web.Request) -> web.Response:
        payload = await request.read()
        return web.json_response(
            {"resources": [{"size": len(payload), "content_type": request.headers.get("Content-Type")}]}
        )

    async def download(request: web.Request) -> web.Response:
        return web.Response(body=b"PK\x03\x04archive", content_type="application/zip")

    async def throttled(request: web.Request) -> web.Response:
        log.append(("throttled", None))
        return web.json_response(
            {"errors": [{"code": 429, "message": "API rate limit exceeded."}]},
            status=429,
            headers={"X-RateLimit-RetryAfter": "0"},
        )

    app.router.add_post("/oauth2/token", token)
    app.router.add_get("/devices/queries/v1", query_devices)
    app.router.add_get("/devices/entities/v1", device_details)
    app.router.add_delete("/devices/entities/v1", delete_devices)
    app.router.add_post("/samples/v1", upload)
    app.router.add_get("/reports/v1", download)
    app.router.add_get("/throttled/v1", throttled)
    return app


@dataclass
class ApiHarness:
    server: TestServer
    log: list[tuple[str, object]] = field(default_factory=list)

    @property
    def host(self) -> str:
        return str(self.server.make_url("/")).rstrip("/")


@pytest_asyncio.fixture
async def api():
    log: list[tuple[str, object]] = []
    server = TestServer(build_app(log))
    await server.start_server()
    yield ApiHarness(server=server, log=log)
    await server.close()
