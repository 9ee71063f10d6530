#!/usr/bin/env python3
"""Basic JSON-RPC 1.1 example using HTTP client and server."""

import logging

from jsonrpc11 import (
    CACHE_MISS,
    CachingClient,
    Handler,
    HttpClient,
    HttpServer,
    Service,
    ServiceError,
    generate_stub,
)


class MemoryCache:
    """Minimal stand-in for a memcached client."""

    def __init__(self):
        self._data = {}

    def get(self, key):
        return self._data.get(key, CACHE_MISS)

    def set(self, key, value, expires):
        self._data[key] = value


def main():
    logging.basicConfig(level=logging.INFO)

    # Declare the service
    service = Service(
        name="Calculator",
        id="urn:uuid:5a4f8c1e-0f52-11de-8c30-0800200c9a66",
        summary="Simple arithmetic",
    )

    @service.procedure(params=[{"name": "x", "type": "num"}, {"name": "y", "type": "num"}],
                       idempotent=True, summary="Adds two numbers")
    def add(x, y):
        return x + y

    @service.procedure(params=[{"name": "name", "type": "str"}])
    def greet(name):
        return f"Hello, {name}!"

    @service.procedure(params=["message"], returns="nil")
    def log(message):
        logging.info("Remote log: %s", message)
        return "discarded"

    server = HttpServer(Handler(service), port=0, path="/calculator")  # Use port 0 for random available port
    server.start()
    print(f"Server running at {server.url}")

    try:
        client = HttpClient(server.url)

        # add is idempotent, so it goes out as a GET
        print(f"5 + 3 = {client.call('add', 5, 3)}")

        # greet is not, so it is POSTed
        print(client.call("greet", name="Alice"))  # "Hello, Alice!"

        # nil return type: the result is always null
        print(f"log returned {client.call('log', 'hi')!r}")

        # Errors can be raised or handed to a callback
        try:
            client.call("add", "five", 3)
        except ServiceError as e:
            print(f"Error: {e}")
        client.call("divide", 1, 0, callback=lambda outcome: print(f"Callback got {outcome!r}"))

        # A stub built from the service description
        calc = generate_stub(client)
        print(f"2 + 2 = {calc.add(2, 2)}")

        # Idempotent calls served from a cache after the first request
        cached = CachingClient(server.url, cache=MemoryCache(), expires=60)
        print(f"cached: {cached.call('add', 1, 1)} {cached.call('add', 1, 1)}")

        print(f"Service description: {client.service_description}")

    finally:
        server.stop()
        print("Server stopped")


if __name__ == "__main__":
    main()
