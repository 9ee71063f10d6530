"""Shared fixtures for JSON-RPC 1.1 tests."""

import json
from typing import Dict, List, Optional
from urllib.parse import unquote, urlsplit

import pytest

from jsonrpc11 import (
    MIME_TYPE_JSON,
    Handler,
    Service,
    TransportRequest,
    TransportResponse,
)

SERVICE_ID = "skdjfhsdhfkjshdjkhskdhfkjshdf"


def make_service() -> Service:
    """The service most tests run against: idempotent add, non-idempotent sub."""
    service = Service(name="TestService", id=SERVICE_ID)
    service.register(
        "add",
        lambda x, y: x + y,
        params=[{"name": "x", "type": "any"}, {"name": "y", "type": "any"}],
        idempotent=True,
    )
    service.register(
        "sub",
        lambda x, y: x - y,
        params=[{"name": "x", "type": "num"}, {"name": "y", "type": "num"}],
    )
    return service


class HandlerTransport:
    """Transport that hands requests straight to a Handler, no sockets."""

    def __init__(self, handler: Handler, service_path: str = ""):
        self.handler = handler
        self.service_path = service_path
        self.sent: List[dict] = []

    def send(self, endpoint, method, path, headers, body=None):
        self.sent.append(
            {"endpoint": endpoint, "method": method, "path": path, "headers": headers, "body": body}
        )
        url = urlsplit(path)
        prefix = self.service_path + "/"
        route = unquote(url.path[len(prefix):]) if url.path.startswith(prefix) else None
        response = self.handler.handle(
            TransportRequest(
                method=method,
                headers=headers,
                query_string=url.query,
                body=body or b"",
                route_method=route or None,
            )
        )
        return TransportResponse(
            status=response.status,
            reason="OK" if response.status == 200 else "Error",
            content_type=response.content_type,
            body=response.body.encode("utf-8"),
        )


class ScriptedTransport:
    """Transport that answers every request with canned responses, in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent: List[dict] = []

    def send(self, endpoint, method, path, headers, body=None):
        self.sent.append(
            {"endpoint": endpoint, "method": method, "path": path, "headers": headers, "body": body}
        )
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def json_response(data, status: int = 200, content_type: Optional[str] = MIME_TYPE_JSON) -> TransportResponse:
    body = data if isinstance(data, (bytes, str)) else json.dumps(data)
    if isinstance(body, str):
        body = body.encode("utf-8")
    return TransportResponse(status=status, reason="OK", content_type=content_type, body=body)


def describe_response(service: Service) -> TransportResponse:
    return json_response({"version": "1.1", "result": service.describe()})


def get_request(query: str = "x=12&y=23", method: str = "add", **overrides) -> TransportRequest:
    headers: Dict[str, str] = {
        "User-Agent": "Internet Exploder 12.0",
        "Accept": "application/json",
    }
    headers.update(overrides.pop("headers", {}))
    return TransportRequest(
        method=overrides.pop("http_method", "GET"),
        headers=headers,
        query_string=query,
        route_method=method,
    )


def post_request(body, **overrides) -> TransportRequest:
    headers: Dict[str, str] = {
        "User-Agent": "Internet Exploder 12.0",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    headers.update(overrides.pop("headers", {}))
    if not isinstance(body, (str, bytes)):
        body = json.dumps(body)
    return TransportRequest(method="POST", headers=headers, body=body)


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def handler(service):
    return Handler(service)
