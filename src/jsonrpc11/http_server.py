"""HTTP server for JSON-RPC 1.1.

Note: This HTTP server uses Python's built-in http.server which is synchronous.
It is meant for tests and small deployments; any other server can drive a
Handler the same way by building a TransportRequest per request.
"""

import http.server
import logging
import socketserver
import threading
import time
from typing import Optional
from urllib.parse import unquote, urlsplit

from .handler import Handler, HttpResponse, TransportRequest

logger = logging.getLogger(__name__)


class HttpServer:
    """HTTP server exposing one JSON-RPC service under a base path."""

    def __init__(
        self,
        handler: Handler,
        port: int = 3000,
        host: str = "localhost",
        path: str = "/",
    ):
        """
        Initialize HTTP server.

        Args:
            handler: Request handler
            port: Port to listen on (use 0 for random available port)
            host: Host to bind to
            path: Base path of the service. POSTs go to the path itself,
                GETs to path/<procedure name>
        """
        self.handler = handler
        self.path = "/" + path.strip("/") if path.strip("/") else ""
        self._requested_port = port
        self._host = host
        self._server: Optional[socketserver.TCPServer] = None
        self._server_thread: Optional[threading.Thread] = None
        self.port: Optional[int] = None

    def route_method(self, path: str) -> Optional[str]:
        """Procedure name for a request path, or None if the path has none."""
        prefix = self.path + "/"
        if not path.startswith(prefix):
            return None
        name = unquote(path[len(prefix):])
        return name or None

    def start(self) -> "HttpServer":
        """Start the HTTP server."""

        # Create request handler class with access to our handler
        server = self

        class RequestHandler(http.server.BaseHTTPRequestHandler):
            """Custom request handler for JSON-RPC."""

            def log_message(self, format, *args):
                logger.debug("%s - %s", self.address_string(), format % args)

            def _dispatch(self):
                url = urlsplit(self.path)
                content_length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(content_length) if content_length else b""

                transport = TransportRequest(
                    method=self.command,
                    headers=dict(self.headers.items()),
                    query_string=url.query,
                    body=body,
                    route_method=server.route_method(url.path),
                )
                self._write(server.handler.handle(transport))

            def _write(self, response: HttpResponse):
                resp_bytes = response.body.encode("utf-8")
                self.send_response(response.status)
                self.send_header("Content-Type", response.content_type)
                self.send_header("Content-Length", str(len(resp_bytes)))
                self.end_headers()
                self.wfile.write(resp_bytes)

            do_GET = _dispatch
            do_POST = _dispatch
            do_PUT = _dispatch
            do_DELETE = _dispatch
            do_PATCH = _dispatch

        # Create threaded HTTP server
        class ThreadedHTTPServer(socketserver.ThreadingMixIn, http.server.HTTPServer):
            """HTTP server with threading support."""

            daemon_threads = True

        # Start server in background thread
        def run_server():
            self._server = ThreadedHTTPServer((self._host, self._requested_port), RequestHandler)
            self.port = self._server.server_address[1]
            self._server.serve_forever()

        self._server_thread = threading.Thread(target=run_server, daemon=True)
        self._server_thread.start()

        # Wait for server to start
        while self.port is None:
            time.sleep(0.01)

        logger.info("JSON-RPC service %s listening on %s", self.handler.service.name, self.url)
        return self

    def stop(self) -> None:
        """Stop the HTTP server."""
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None

        if self._server_thread:
            self._server_thread.join(timeout=1.0)
            self._server_thread = None

        self.port = None

    @property
    def url(self) -> Optional[str]:
        """Get service URL."""
        if self._server and self.port:
            return f"http://{self._host}:{self.port}{self.path}"
        return None
