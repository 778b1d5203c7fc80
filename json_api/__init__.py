from flask import Blueprint, Flask, current_app
from werkzeug.exceptions import HTTPException

from json_api.responses import EXTENSION_KEY, ResponseEnvelopeBuilder, get_builder


def _fallback_status(code: int, builder: ResponseEnvelopeBuilder) -> int:
    if code in builder.statuses:
        return code
    return 500 if code >= 500 else 400


def create_api_bp(url_prefix: str = "/api/v1") -> Blueprint:
    api_bp = Blueprint("api", __name__, url_prefix=url_prefix)

    from json_api.health import health_bp

    api_bp.register_blueprint(health_bp)

    # every error the app raises answers with an envelope, never HTML
    @api_bp.app_errorhandler(HTTPException)
    def api_http_error(e):
        builder = get_builder()
        status = _fallback_status(e.code, builder)
        headers = {}
        if status == 405 and getattr(e, "valid_methods", None):
            headers["Allow"] = ", ".join(e.valid_methods)
        return builder.respond(status, e.description or e.name, headers=headers)

    @api_bp.app_errorhandler(Exception)
    def api_server_error(e):
        current_app.logger.exception("Unhandled exception: %s", e)
        return get_builder().respond_with_internal_server_error("Internal server error")

    return api_bp


def init_app(app: Flask) -> ResponseEnvelopeBuilder:
    """Install the configured envelope builder and the JSON-only API blueprint."""
    builder = ResponseEnvelopeBuilder.from_config(app.config, response_class=app.response_class)
    app.extensions[EXTENSION_KEY] = builder
    app.register_blueprint(create_api_bp(app.config.get("API_URL_PREFIX", "/api/v1")))
    return builder
