"""
Tests for per-route rate limiting
"""

import time

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from limits import parse, parse_many

from app.core.rate_limit import RateLimiter


def test_every_limit_is_enforced():
    limiter = RateLimiter()
    items = parse_many("2/second;3/minute")

    assert limiter.check("login", "1.2.3.4", items)
    assert limiter.check("login", "1.2.3.4", items)
    assert not limiter.check("login", "1.2.3.4", items)

    # Per-second window has rolled over, per-minute one has not
    time.sleep(1.1)
    assert not limiter.check("login", "1.2.3.4", items)

    limiter.reset()
    assert limiter.check("login", "1.2.3.4", items)


def test_clients_and_routes_are_counted_separately():
    limiter = RateLimiter()
    items = parse_many("1/minute")

    assert limiter.check("login", "1.1.1.1", items)
    assert limiter.check("login", "2.2.2.2", items)
    assert limiter.check("register", "1.1.1.1", items)
    assert not limiter.check("login", "1.1.1.1", items)


def test_disabled_limiter_allows_everything():
    limiter = RateLimiter(enabled=False)
    items = parse_many("1/minute")

    assert all(limiter.check("login", "1.1.1.1", items) for _ in range(10))


def test_expired_windows_are_evicted():
    limiter = RateLimiter()
    item = parse("1/second")

    for n in range(500):
        limiter.check("login", f"10.0.{n // 256}.{n % 256}", [item])
    assert len(limiter.storage.storage) == 500

    time.sleep(1.1)
    limiter.check("login", "192.168.0.1", [item])
    time.sleep(0.2)

    assert len(limiter.storage.storage) <= 1


def test_dependency_returns_429():
    limiter = RateLimiter()
    app = FastAPI()

    @app.get("/ping", dependencies=[Depends(limiter.limit("ping", "2/second;3/10 seconds"))])
    def ping():
        return {"pong": True}

    @app.get("/pong", dependencies=[Depends(limiter.limit("pong", "2/second"))])
    def pong():
        return {"ping": True}

    client = TestClient(app)
    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200

    response = client.get("/ping")
    assert response.status_code == 429
    assert response.json() == {"detail": "Too many requests"}

    assert client.get("/pong").status_code == 200
