import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from components.authservice.observability import RequestContextMiddleware


def _app():
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/auth/ping")
    async def ping():
        return {"ok": True}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


@pytest.mark.anyio
async def test_middleware_propagates_ids_and_disables_caching(caplog):
    caplog.set_level(logging.INFO, logger="authservice")
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        r = await ac.get("/auth/ping", headers={"x-request-id": "req-9"})
    assert r.status_code == 200
    assert r.headers["x-request-id"] == "req-9"
    assert r.headers["x-trace-id"]
    assert r.headers["cache-control"] == "no-store"
    messages = [rec.getMessage() for rec in caplog.records if rec.name == "authservice"]
    assert messages == ["request.start", "request.end"]


@pytest.mark.anyio
async def test_middleware_logs_and_reraises_unhandled_errors(caplog):
    caplog.set_level(logging.INFO, logger="authservice")
    transport = ASGITransport(app=_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/boom")
    assert r.status_code == 500
    assert any(rec.getMessage() == "request.exception" for rec in caplog.records)
