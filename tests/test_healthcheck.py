from __future__ import annotations

from scripts.healthcheck import is_healthy, probe_url


def test_ok_payload_is_healthy() -> None:
    assert is_healthy(200, b'{"status": "ok"}')


def test_error_status_or_bad_body_is_unhealthy() -> None:
    assert not is_healthy(503, b'{"status": "ok"}')
    assert not is_healthy(200, b"<html>")
    assert not is_healthy(200, b'{"status": "starting"}')


def test_probe_url_from_env(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.delenv("HEALTHCHECK_HOST", raising=False)
    monkeypatch.delenv("HEALTHCHECK_PATH", raising=False)

    assert probe_url() == "http://127.0.0.1:9000/health"
