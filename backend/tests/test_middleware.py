from fastapi import FastAPI
from fastapi.testclient import TestClient

from timetabler.core.middleware import RequestSizeLimitMiddleware, RequestTimingMiddleware


def _app(max_bytes: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=max_bytes)
    app.add_middleware(RequestTimingMiddleware)

    @app.post("/echo")
    def echo(payload: dict) -> dict:
        return payload

    return app


def test_oversized_body_is_rejected():
    client = TestClient(_app(max_bytes=16))

    response = client.post("/echo", json={"padding": "x" * 64})

    assert response.status_code == 413
    assert "Request body too large" in response.json()["detail"]


def test_small_body_passes_and_is_timed():
    client = TestClient(_app(max_bytes=1024))

    response = client.post("/echo", json={"ok": True})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert int(response.headers["X-Process-Time-Ms"]) >= 0
