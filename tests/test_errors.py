"""
Tests for error payloads and server-side error logging.
"""
import logging

from apps.shared.errors import log_error


def test_log_error_returns_correlation_id(caplog):
    with caplog.at_level(logging.ERROR, logger="apps.shared.errors"):
        error_id = log_error(RuntimeError("disk full"), "Saving blog")

    assert len(error_id) == 8
    assert f"Saving blog failed [{error_id}]: RuntimeError: disk full" in caplog.text


def test_unknown_route_uses_json_error_payload(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"message": "Not Found", "category": "client_error"}


def test_wrong_method_uses_json_error_payload(client):
    response = client.patch("/api/blogs")

    assert response.status_code == 405
    assert response.json() == {"message": "Method Not Allowed", "category": "client_error"}
