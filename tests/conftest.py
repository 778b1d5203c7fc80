import pytest

from json_api.responses import ResponseEnvelopeBuilder


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    # minimal env so create_app() picks the test config
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.delenv("ENVELOPE_INCLUDE_REDIRECTS", raising=False)
    monkeypatch.delenv("ENVELOPE_EMPTY_NO_CONTENT", raising=False)
    # Sentry stays off unless a test opts back in
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.setenv("SENTRY_DISABLED", "1")
    monkeypatch.setattr("sentry_sdk.init", lambda *a, **k: None, raising=True)


@pytest.fixture
def app(_env):
    # import AFTER env + Sentry patch
    from app import create_app

    app, _env_name = create_app(testing=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def builder():
    return ResponseEnvelopeBuilder()
