import logging
import os

import sentry_sdk
from dotenv import find_dotenv, load_dotenv
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

import json_api

# ---------- env ----------
load_dotenv(find_dotenv())

_TRUTHY = {"1", "true", "yes", "on"}
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# (event section, field) pairs never sent to Sentry
_SCRUBBED_FIELDS = (("request", "data"), ("user", "email"))


def _configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    app.logger.setLevel(level)


def _before_send(event, hint):
    for section, field in _SCRUBBED_FIELDS:
        part = event.get(section) or {}
        if field in part:
            part[field] = "[filtered]"
        event[section] = part
    return event


def _config_class(env: str):
    if env == "development":
        from config import DevConfig as Cfg
    elif env in ("production", "prod"):
        from config import ProdConfig as Cfg
    elif env == "staging":
        from config import StagingConfig as Cfg
    elif env == "testing":
        from config import TestConfig as Cfg
    else:
        raise RuntimeError(f"Unknown APP_ENV/FLASK_ENV value: {env!r}")
    return Cfg


def _env_flag(app: Flask, key: str) -> None:
    raw = os.getenv(key)
    if raw is not None:
        app.config[key] = raw.strip().lower() in _TRUTHY


def create_app(testing: bool = False) -> tuple[Flask, str]:
    app = Flask(__name__)

    env = (os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "production").lower()
    Cfg = _config_class(env)

    # Don’t initialize Sentry in tests (or when explicitly disabled)
    sentry_disabled = os.getenv("SENTRY_DISABLED") == "1"
    if (not testing) and (not sentry_disabled) and os.getenv("SENTRY_DSN"):
        sentry_sdk.init(
            dsn=os.getenv("SENTRY_DSN"),
            integrations=[FlaskIntegration(), LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
            traces_sample_rate=0.2,
            environment=env,
            send_default_pii=False,
            before_send=_before_send,
            shutdown_timeout=0,
        )

    app.config.from_object(Cfg)
    app.config["TESTING"] = testing or app.config.get("TESTING", False)
    _env_flag(app, "ENVELOPE_INCLUDE_REDIRECTS")
    _env_flag(app, "ENVELOPE_EMPTY_NO_CONTENT")
    _configure_logging(app)

    json_api.init_app(app)
    app.logger.info(
        "API ready (env=%s, redirects=%s, empty 204=%s)",
        env,
        app.config["ENVELOPE_INCLUDE_REDIRECTS"],
        app.config["ENVELOPE_EMPTY_NO_CONTENT"],
    )
    return app, env


if __name__ == "__main__":
    app, ENV = create_app()
    app.run(debug=app.config.get("DEBUG", False))
