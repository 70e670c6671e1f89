"""
JSON API response envelopes.

Every request gets its own ApiService. The first call to ``return_json`` or
``handle_api_error`` produces the response; later calls are no-ops, so a
handler may report an error defensively without clobbering a body that was
already produced.

Success: ``{"data": [payload], "token": "<uuid4>"}`` with HTTP 200.
Error:   ``{"errors": [{"status", "source", "title", "method", "detail"}]}``.
"""
import logging
import uuid
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, List, Optional

from flask import Response, current_app, request as flask_request
from werkzeug.http import HTTP_STATUS_CODES

from linq.blueprints.metrics import record_envelope
from linq.exceptions import BadRequestError, LinqError
from linq.utils.serialization import parse_uuid

logger = logging.getLogger(__name__)


@dataclass
class RequestDataIds:
    """Body ``{"data": {"ids": [...]}, "token": "..."}``."""
    ids: List[uuid.UUID] = field(default_factory=list)
    token: str = ''

    @classmethod
    def from_json(cls, body: dict) -> 'RequestDataIds':
        data = body.get('data') or {}
        if not isinstance(data, dict) or not isinstance(data.get('ids', []), list):
            raise BadRequestError('data.ids must be a list of UUIDs')
        return cls(
            ids=[parse_uuid(i, 'ids') for i in data.get('ids', [])],
            token=body.get('token') or '',
        )


@dataclass
class RequestDataImage:
    """Body ``{"data": "<encoded image>", "token": "..."}``."""
    data: str = ''
    token: str = ''

    @classmethod
    def from_json(cls, body: dict) -> 'RequestDataImage':
        data = body.get('data')
        if not isinstance(data, str):
            raise BadRequestError('data must be a string')
        return cls(data=data, token=body.get('token') or '')


class ApiService:
    """Request-scoped responder holding the single response of one exchange."""

    def __init__(self, request=None):
        self.request = request if request is not None else flask_request
        self.returned = False
        self.response: Optional[Response] = None

    @property
    def content_type(self) -> str:
        vendor = current_app.config.get('API_VENDOR', 'linq')
        return f"application/{vendor}.api+json; charset=UTF-8"

    @property
    def request_uri(self) -> str:
        """Path plus query string, as the client sent it."""
        query = self.request.query_string.decode('utf-8', 'replace')
        return f"{self.request.path}?{query}" if query else self.request.path

    def form_value(self, key: str, default: Any = None) -> Any:
        """Query string or form field."""
        return self.request.values.get(key, default)

    def route_arg(self, key: str, default: Any = None) -> Any:
        """Path parameter captured by the URL rule."""
        return (self.request.view_args or {}).get(key, default)

    def decode_body(self, request_data=None) -> Any:
        """
        Decode the JSON body.

        With ``request_data`` (RequestDataIds, RequestDataImage, ...) the body
        is converted through its ``from_json``; otherwise the raw object is
        returned. Raises BadRequestError for a missing or malformed body.
        """
        body = self.request.get_json(silent=True)
        if not isinstance(body, dict):
            logger.warning(f"[API] Undecodable body on {self.request.method} {self.request_uri}")
            raise BadRequestError('request body must be a JSON object')
        if request_data is None:
            return body
        return request_data.from_json(body)

    def _respond(self, envelope: dict, status: int) -> None:
        body = current_app.json.dumps(envelope)
        self.response = Response(body, status=status, content_type=self.content_type)
        self.returned = True
        record_envelope('errors' if 'errors' in envelope else 'data', status)

    def return_json(self, payload: Any) -> None:
        """Respond 200 with ``payload`` in the success envelope, unless already responded."""
        if self.returned:
            return
        self._respond({
            'data': [payload],
            'token': str(uuid.uuid4()),
        }, 200)

    def handle_api_error(self, err: Optional[BaseException], status: int) -> None:
        """Respond with the error envelope for ``err``; no-op if ``err`` is None or already responded."""
        if err is None or self.returned:
            return
        detail = getattr(err, 'message', None) or str(err)
        method = self.request.method
        uri = self.request_uri
        self._respond({
            'errors': [{
                'status': status,
                'source': uri,
                'title': HTTP_STATUS_CODES.get(status, ''),
                'method': method,
                'detail': detail,
            }]
        }, status)
        logger.warning(f"{method} {uri} {status} {detail}")


def api_view(f):
    """
    Decorator: hand the view an ApiService and return its response.

    LinqError raised by the view is rendered with its status code. A view
    that responds with neither envelope gets a 500.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        api = ApiService()
        try:
            f(api, *args, **kwargs)
        except LinqError as e:
            api.handle_api_error(e, e.status_code)
        if not api.returned:
            api.handle_api_error(RuntimeError('handler produced no response'), 500)
        return api.response
    return decorated_function
