"""Standard JSON response envelope.

Every API response body looks like::

    {
        "message": "message to the user relative to the status code",
        "data": { ... } or [ ... ]
    }

The HTTP status travels on the status line only; it is never repeated in
the body. ``ResponseEnvelopeBuilder.respond`` does the work and one
``respond_with_<name>`` method per entry of ``NAMED_STATUSES`` calls it with
a fixed status.
"""
import logging
import sys
from collections.abc import Mapping, Sequence
from http import HTTPStatus

from flask import Response, current_app, has_app_context
from flask import json as flask_json
from werkzeug.datastructures import Headers

from json_api.errors import CallerMisuseError, SerializationFailure, TransportFailure

logger = logging.getLogger(__name__)

EXTENSION_KEY = "json_api"

# name -> (status, what it is for)
NAMED_STATUSES = {
    "ok": (
        HTTPStatus.OK,
        "General status code. Most common code used to indicate success.",
    ),
    "created": (
        HTTPStatus.CREATED,
        "Successful creation occurred (via either POST or PUT). A Location "
        "header naming the new resource should be passed in ``headers``.",
    ),
    "no_content": (
        HTTPStatus.NO_CONTENT,
        "Success with nothing in the body, often used for DELETE and PUT.",
    ),
    "moved_permanently": (
        HTTPStatus.MOVED_PERMANENTLY,
        "Resource moved for good. Clients must not redirect automatically "
        "unless the original request was GET or HEAD.",
    ),
    "moved_temporarily": (
        HTTPStatus.FOUND,
        "Resource temporarily elsewhere. Clients must not redirect "
        "automatically unless the original request was GET or HEAD.",
    ),
    "see_other": (
        HTTPStatus.SEE_OTHER,
        "Result of a POST lives at another GET-able resource, usually "
        "pointed at by a link inside ``data``.",
    ),
    "bad_request": (
        HTTPStatus.BAD_REQUEST,
        "Fulfilling the request would cause an invalid state: validation "
        "errors, missing data and the like.",
    ),
    "unauthorized": (
        HTTPStatus.UNAUTHORIZED,
        "Missing or invalid authentication.",
    ),
    "forbidden": (
        HTTPStatus.FORBIDDEN,
        "Authenticated but not allowed, or the resource is unavailable.",
    ),
    "not_found": (
        HTTPStatus.NOT_FOUND,
        "Resource absent, or a 401/403 masked for security reasons.",
    ),
    "method_not_allowed": (
        HTTPStatus.METHOD_NOT_ALLOWED,
        "URL exists but not for this method. Pass the supported methods as "
        "an ``Allow`` header, e.g. ``headers={'Allow': 'GET, PUT'}``.",
    ),
    "conflict": (
        HTTPStatus.CONFLICT,
        "Resource conflict: duplicate entries, or deleting a root object "
        "when cascade delete is not supported.",
    ),
    "internal_server_error": (
        HTTPStatus.INTERNAL_SERVER_ERROR,
        "Unexpected condition. Only for unhandled exceptions, never for "
        "expected failure branches.",
    ),
}

SUPPORTED_STATUSES = frozenset(status for status, _doc in NAMED_STATUSES.values())
REDIRECT_STATUSES = frozenset(
    {HTTPStatus.MOVED_PERMANENTLY, HTTPStatus.FOUND, HTTPStatus.SEE_OTHER}
)


def build_envelope(message="", data=None) -> dict:
    """Validate ``message``/``data`` and return the body as a dict."""
    if not isinstance(message, str):
        raise CallerMisuseError(
            f"message must be a str, got {type(message).__name__}"
        )
    if data is None:
        data = {}
    elif isinstance(data, Mapping):
        if not isinstance(data, dict):
            data = dict(data)
    elif isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        if not isinstance(data, (list, tuple)):
            data = list(data)
    else:
        raise CallerMisuseError(
            f"data must be a mapping or a sequence, got {type(data).__name__}"
        )
    return {"message": message, "data": data}


def serialize_envelope(envelope: dict) -> str:
    """Dump through the app's JSON provider (the module one outside an app)."""
    try:
        return flask_json.dumps(
            envelope,
            sort_keys=False,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationFailure(f"Envelope data is not JSON serializable: {exc}") from exc


def build_headers(headers=None) -> Headers:
    """Caller headers (mapping or list of pairs) validated into ``Headers``.

    Repeated names in a list of pairs are all kept.
    """
    validated = Headers()
    if not headers:
        return validated
    try:
        items = list(headers.items() if isinstance(headers, Mapping) else headers)
        pairs = [(name, value) for name, value in items]
    except (TypeError, ValueError) as exc:
        raise CallerMisuseError(f"headers must be a mapping or a list of pairs: {exc}") from exc
    for name, value in pairs:
        if not isinstance(name, str) or not name or any(c in name for c in "\r\n:"):
            raise CallerMisuseError(f"Invalid header name {name!r}")
        value = str(value)
        if "\r" in value or "\n" in value:
            raise CallerMisuseError(f"Header {name} must not contain newlines")
        validated.add(name, value)
    return validated


def _json_mimetype() -> str:
    if has_app_context():
        return current_app.json.mimetype
    return "application/json"


class ResponseEnvelopeBuilder:
    """Turns (status, message, data) into a finalized JSON response.

    Holds configuration only, so one instance can serve any number of
    concurrent requests.
    """

    def __init__(
        self,
        include_redirects: bool = True,
        empty_no_content: bool = False,
        response_class=Response,
    ):
        self.include_redirects = include_redirects
        self.empty_no_content = empty_no_content
        self.response_class = response_class

    @classmethod
    def from_config(cls, config, response_class=Response) -> "ResponseEnvelopeBuilder":
        return cls(
            include_redirects=bool(config.get("ENVELOPE_INCLUDE_REDIRECTS", True)),
            empty_no_content=bool(config.get("ENVELOPE_EMPTY_NO_CONTENT", False)),
            response_class=response_class,
        )

    @property
    def statuses(self) -> frozenset:
        if self.include_redirects:
            return SUPPORTED_STATUSES
        return SUPPORTED_STATUSES - REDIRECT_STATUSES

    def _check_status(self, status_code) -> HTTPStatus:
        if isinstance(status_code, bool) or not isinstance(status_code, int):
            raise CallerMisuseError(f"Status code must be an int, got {status_code!r}")
        if status_code not in self.statuses:
            if status_code in REDIRECT_STATUSES:
                raise CallerMisuseError(f"Redirect status {status_code} is disabled")
            raise CallerMisuseError(f"Unsupported status code {status_code}")
        return HTTPStatus(status_code)

    def respond(self, status_code, message="", data=None, *, response=None, headers=None):
        """Build the envelope response for ``status_code``.

        Writes into ``response`` when given, otherwise into a new
        ``response_class`` instance, and returns it. Extra ``headers`` (a
        mapping or a list of pairs) replace same-named headers on the
        response; nothing else is added. Everything is validated and
        serialized before ``response`` is touched.
        """
        status = self._check_status(status_code)
        envelope = build_envelope(message, data)

        if status is HTTPStatus.INTERNAL_SERVER_ERROR and sys.exc_info()[1] is None:
            logger.warning(
                "500 envelope built outside exception handling (message=%r); "
                "use a 4xx status for expected failures",
                message,
            )

        if status is HTTPStatus.NO_CONTENT and self.empty_no_content:
            body = None
        else:
            body = serialize_envelope(envelope)
        extra_headers = build_headers(headers)

        if response is None:
            response = self.response_class()
        elif getattr(response, "envelope_finalized", False):
            raise TransportFailure("Response has already been finalized")

        try:
            response.status_code = status.value
            if body is None:
                response.set_data(b"")
                response.headers.pop("Content-Type", None)
            else:
                response.mimetype = _json_mimetype()
                response.set_data(body)
            for name in {key.lower() for key, _value in extra_headers}:
                response.headers.remove(name)
            for name, value in extra_headers:
                response.headers.add(name, value)
        except Exception as exc:
            raise TransportFailure(f"Could not write response: {exc}") from exc

        response.envelope_finalized = True
        logger.debug("Built %s envelope (%d bytes)", status.value, response.content_length or 0)
        return response


def _named_responder(name, status, doc):
    def responder(self, message="", data=None, **kwargs):
        return self.respond(status, message, data, **kwargs)

    responder.__name__ = f"respond_with_{name}"
    responder.__qualname__ = f"ResponseEnvelopeBuilder.respond_with_{name}"
    responder.__doc__ = f"{status.value} - {status.phrase.upper()}\n\n{doc}"
    return responder


for _name, (_status, _doc) in NAMED_STATUSES.items():
    setattr(ResponseEnvelopeBuilder, f"respond_with_{_name}", _named_responder(_name, _status, _doc))


_default_builder = ResponseEnvelopeBuilder()


def get_builder() -> ResponseEnvelopeBuilder:
    """Builder configured on the current app, or the module default."""
    if has_app_context():
        return current_app.extensions.get(EXTENSION_KEY, _default_builder)
    return _default_builder
