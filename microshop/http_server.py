"""JSON-over-HTTP transport: route tables for each service and a threaded server."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import unquote

from microshop.errors import ServiceError
from microshop.orders import OrderService
from microshop.repertory import RepertoryService
from microshop.users import UsersService

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF
_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

Handler = Callable[[Mapping[str, str], Mapping[str, Any]], Mapping[str, Any]]
RouteEntry = tuple[str, str, Handler]


def _error(code: int, reason: str, message: str) -> tuple[int, dict[str, Any]]:
    return code, {"code": code, "reason": reason, "message": message, "metadata": {}}


def _integer(source: Mapping[str, Any], key: str, low: int, high: int) -> int:
    value = source.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"invalid value for {key}: {value!r}")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            raise ValueError(f"invalid value for {key}: {value!r}") from None
    if not isinstance(value, int):
        raise ValueError(f"invalid value for {key}: {value!r}")
    if not low <= value <= high:
        raise ValueError(f"value for {key} out of range: {value}")
    return value


def _uint(source: Mapping[str, Any], key: str) -> int:
    return _integer(source, key, 0, _U32)


def _int(source: Mapping[str, Any], key: str) -> int:
    return _integer(source, key, _I64_MIN, _I64_MAX)


def _string(source: Mapping[str, Any], key: str) -> str:
    value = source.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"invalid value for {key}: {value!r}")
    return value


def order_routes(service: OrderService) -> list[RouteEntry]:
    """Routes of the order service."""
    return [
        (
            "POST",
            "/v1/orders",
            lambda params, body: service.create_order(
                _uint(body, "user_id"), _uint(body, "good_id"), _uint(body, "good_quantity")
            ),
        ),
        (
            "GET",
            "/v1/orders/{id}",
            lambda params, body: service.get_order(_uint(params, "id")),
        ),
    ]


def user_routes(service: UsersService) -> list[RouteEntry]:
    """Routes of the user service."""
    return [
        (
            "POST",
            "/v1/users/register",
            lambda params, body: service.register(_string(body, "name")),
        ),
    ]


def repertory_routes(service: RepertoryService) -> list[RouteEntry]:
    """Routes of the stock service."""
    return [
        (
            "POST",
            "/v1/repertory/purchase",
            lambda params, body: service.purchase(
                _uint(body, "repertory_id"), _uint(body, "quantity"), _uint(body, "user_id")
            ),
        ),
        (
            "POST",
            "/v1/repertory",
            lambda params, body: service.add_repertory(_uint(body, "id"), _int(body, "quantity")),
        ),
    ]


def _segments(path: str) -> list[str]:
    return path.strip("/").split("/")


def _match(pattern: str, path: str) -> dict[str, str] | None:
    expected_parts = _segments(pattern)
    actual_parts = _segments(path)
    if len(expected_parts) != len(actual_parts):
        return None
    params: dict[str, str] = {}
    for expected, actual in zip(expected_parts, actual_parts):
        if expected.startswith("{") and expected.endswith("}"):
            if not actual:
                return None
            params[expected[1:-1]] = unquote(actual)
        elif expected != actual:
            return None
    return params


def _decode_body(body: bytes | str | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if body is None:
        return {}
    if isinstance(body, Mapping):
        return body
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8")
    if not body.strip():
        return {}
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def dispatch(
    routes: Iterable[RouteEntry],
    method: str,
    path: str,
    body: bytes | str | Mapping[str, Any] | None = None,
) -> tuple[int, dict[str, Any]]:
    """Route one request and return its status code and JSON payload."""
    path = path.split("?", 1)[0]
    method = method.upper()
    candidates = [
        (route_method, handler, params)
        for route_method, pattern, handler in routes
        if (params := _match(pattern, path)) is not None
    ]
    if not candidates:
        return _error(404, "NOT_FOUND", f"no route for {path}")
    chosen = next(
        ((handler, params) for route_method, handler, params in candidates
         if route_method.upper() == method),
        None,
    )
    if chosen is None:
        return _error(405, "METHOD_NOT_ALLOWED", f"method {method} not allowed for {path}")
    handler, params = chosen

    try:
        payload = _decode_body(body)
    except ValueError as exc:
        return _error(400, "CODEC", f"cannot decode request body: {exc}")

    try:
        result = handler(params, payload)
    except ServiceError as exc:
        return _error(exc.code, exc.reason, exc.message)
    except LookupError as exc:
        return _error(404, "NOT_FOUND", str(exc) or "not found")
    except ValueError as exc:
        return _error(400, "BAD_REQUEST", str(exc))
    except Exception:
        _log.exception("panic while handling %s %s", method, path)
        return _error(500, "UNKNOWN", "unknown request error")
    return 200, dict(result)


def _split_address(address: str) -> tuple[str, int]:
    if not address:
        return "", 0
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, 0
    try:
        return host.strip("[]"), int(port)
    except ValueError as exc:
        raise ValueError(f"invalid listen address: {address!r}") from exc


def _make_handler(
    routes: Sequence[RouteEntry], timeout: float | None
) -> type[BaseHTTPRequestHandler]:
    class _RequestHandler(BaseHTTPRequestHandler):
        server_version = "microshop"

        def _handle(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                status, payload = _error(400, "BAD_REQUEST", "invalid Content-Length")
            else:
                body = self.rfile.read(length) if length > 0 else b""
                status, payload = dispatch(routes, self.command, self.path, body)
            data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _handle

        def log_message(self, format: str, *args: Any) -> None:
            _log.info("%s - %s", self.address_string(), format % args)

    _RequestHandler.timeout = timeout
    return _RequestHandler


class ApiServer:
    """A threaded HTTP server answering JSON requests from a route table."""

    def __init__(
        self,
        routes: Iterable[RouteEntry],
        address: str = "",
        timeout: float | None = None,
    ) -> None:
        self.routes: tuple[RouteEntry, ...] = tuple(routes)
        self.timeout = timeout
        host, port = _split_address(address)
        self._httpd = ThreadingHTTPServer((host, port), _make_handler(self.routes, timeout))
        self._httpd.daemon_threads = True
        self._serving = threading.Event()
        self._closed = False

    @property
    def address(self) -> tuple[str, int]:
        """The host and port actually listened on."""
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    def serve_forever(self) -> None:
        """Answer requests until ``shutdown`` is called."""
        self._serving.set()
        try:
            self._httpd.serve_forever()
        finally:
            self._serving.clear()

    def shutdown(self) -> None:
        """Stop serving and release the listening socket."""
        if self._serving.is_set():
            self._httpd.shutdown()
        if not self._closed:
            self._closed = True
            self._httpd.server_close()

    def __enter__(self) -> ApiServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()