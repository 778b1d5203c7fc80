"""Tests for the JSON-only API blueprint and its error handlers."""
import pytest
from flask import abort

from json_api.responses import get_builder


@pytest.fixture
def widgets_app(app):
    @app.route("/widgets", methods=["POST"])
    def create_widget():
        return get_builder().respond_with_created(
            "Widget created", {"id": 42}, headers={"Location": "/widgets/42"}
        )

    @app.route("/widgets/<int:widget_id>", methods=["GET", "DELETE"])
    def widget(widget_id):
        if widget_id != 42:
            return get_builder().respond_with_not_found(f"Widget {widget_id} not found")
        return get_builder().respond_with_ok("", {"id": widget_id, "name": "sprocket"})

    @app.route("/widgets/duplicate")
    def duplicate_widget():
        abort(409, "Widget already exists")

    @app.route("/widgets/unprocessable")
    def unprocessable_widget():
        abort(422)

    @app.route("/widgets/unavailable")
    def unavailable_widget():
        abort(503)

    @app.route("/widgets/broken")
    def broken_widget():
        raise RuntimeError("database exploded")

    @app.route("/widgets/moved")
    def moved_widget():
        return get_builder().respond_with_see_other("", {"links": {"self": "/widgets/42"}})

    return app


@pytest.fixture
def widgets_client(widgets_app):
    return widgets_app.test_client()


def test_health_ok(client):
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    j = r.get_json()
    assert set(j) == {"message", "data"}
    assert j["message"] == "ok"
    assert j["data"]["status"] == "ok"
    assert j["data"]["env"] == "testing"
    assert j["data"]["redirects_enabled"] is True


def test_unknown_route_returns_envelope_404(client):
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.is_json
    j = r.get_json()
    assert set(j) == {"message", "data"}
    assert j["data"] == {}
    assert isinstance(j["message"], str) and j["message"]


def test_wrong_method_returns_405_with_allow_header(client):
    r = client.post("/api/v1/health")
    assert r.status_code == 405
    assert "GET" in r.headers["Allow"]
    assert r.get_json()["data"] == {}


def test_created_route(widgets_client):
    r = widgets_client.post("/widgets")
    assert r.status_code == 201
    assert r.headers["Location"].endswith("/widgets/42")
    assert r.get_json() == {"message": "Widget created", "data": {"id": 42}}


def test_not_found_from_view(widgets_client):
    r = widgets_client.get("/widgets/7")
    assert r.status_code == 404
    assert r.get_json() == {"message": "Widget 7 not found", "data": {}}


def test_ok_from_view(widgets_client):
    r = widgets_client.get("/widgets/42")
    assert r.status_code == 200
    assert r.get_json()["data"] == {"id": 42, "name": "sprocket"}


def test_abort_with_whitelisted_code_keeps_it(widgets_client):
    r = widgets_client.get("/widgets/duplicate")
    assert r.status_code == 409
    assert r.get_json() == {"message": "Widget already exists", "data": {}}


def test_abort_with_unlisted_4xx_falls_back_to_400(widgets_client):
    r = widgets_client.get("/widgets/unprocessable")
    assert r.status_code == 400
    assert set(r.get_json()) == {"message", "data"}


def test_abort_with_unlisted_5xx_falls_back_to_500(widgets_client):
    r = widgets_client.get("/widgets/unavailable")
    assert r.status_code == 500


def test_unhandled_exception_returns_500_envelope(widgets_client):
    r = widgets_client.get("/widgets/broken")
    assert r.status_code == 500
    assert r.get_json() == {"message": "Internal server error", "data": {}}


def test_redirect_envelope(widgets_client):
    r = widgets_client.get("/widgets/moved")
    assert r.status_code == 303
    assert r.get_json()["data"]["links"]["self"] == "/widgets/42"


def test_disabled_redirects_surface_as_500(monkeypatch):
    monkeypatch.setenv("ENVELOPE_INCLUDE_REDIRECTS", "0")
    from app import create_app

    app, _ = create_app(testing=True)

    @app.route("/moved")
    def moved():
        return get_builder().respond_with_moved_permanently("gone")

    r = app.test_client().get("/moved")
    assert r.status_code == 500
    assert r.get_json()["message"] == "Internal server error"


def test_no_content_status(monkeypatch):
    monkeypatch.setenv("ENVELOPE_EMPTY_NO_CONTENT", "true")
    from app import create_app

    app, _ = create_app(testing=True)

    @app.route("/gone", methods=["DELETE"])
    def gone():
        return get_builder().respond_with_no_content("deleted")

    r = app.test_client().delete("/gone")
    assert r.status_code == 204
    assert r.data == b""
