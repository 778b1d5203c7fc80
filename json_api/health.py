from flask import Blueprint, current_app

from json_api.responses import get_builder

health_bp = Blueprint("api_health", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Health check -- no auth (for monitoring/load balancers)."""
    builder = get_builder()
    return builder.respond_with_ok(
        "ok",
        {
            "status": "ok",
            "env": current_app.config.get("ENV_NAME", "production"),
            "redirects_enabled": builder.include_redirects,
        },
    )
