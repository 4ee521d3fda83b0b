import functools

from asgiref.typing import (
    ASGI3Application,
    ASGIReceiveCallable,
    ASGISendCallable,
    ASGISendEvent,
    Scope,
)

from asgi_fsdav.constants import DAVHeaders

"""
- https://developer.mozilla.org/zh-CN/docs/Web/HTTP/CORS

- https://github.com/encode/starlette/blob/master/starlette/middleware/cors.py

WebDAV clients in a browser send PROPFIND/MKCOL/... which are never "simple"
requests, so the CORS headers go on every response, preflight (OPTIONS) is
answered by the server itself.
"""


class ASGIMiddlewareCORS:
    def __init__(
        self,
        app: ASGI3Application,
        allow_origins: list[str] = ("*",),
        allow_methods: list[str] = ("GET",),
        allow_headers: list[str] = (),
        expose_headers: list[str] = (),
        preflight_max_age: int = 600,
    ) -> None:
        allow_all_origins = "*" in allow_origins

        cors_headers = DAVHeaders()
        if allow_all_origins:
            cors_headers[b"Access-Control-Allow-Origin"] = b"*"
        cors_headers.update(
            {
                b"Access-Control-Allow-Methods": ", ".join(allow_methods).encode(
                    "utf-8"
                ),
                b"Access-Control-Max-Age": str(preflight_max_age).encode("utf-8"),
            }
        )
        if allow_headers:
            cors_headers[b"Access-Control-Allow-Headers"] = ", ".join(
                allow_headers
            ).encode("utf-8")
        if expose_headers:
            cors_headers[b"Access-Control-Expose-Headers"] = ", ".join(
                expose_headers
            ).encode("utf-8")

        self.app = app
        self.allow_origins = [o.encode("utf-8") for o in allow_origins]
        self.allow_all_origins = allow_all_origins
        self.cors_headers = cors_headers

    async def __call__(
        self, scope: Scope, receive: ASGIReceiveCallable, send: ASGISendCallable
    ) -> None:
        if scope["type"] != "http":  # pragma: no cover
            await self.app(scope, receive, send)
            return

        request_headers = DAVHeaders(scope.get("headers"))
        send = functools.partial(self.send, send=send, request_headers=request_headers)
        await self.app(scope, receive, send)

    def is_allowed_origin(self, origin: bytes) -> bool:
        if self.allow_all_origins:
            return True

        return origin in self.allow_origins

    async def send(
        self, message: ASGISendEvent, send: ASGISendCallable, request_headers: DAVHeaders
    ) -> None:
        if message["type"] != "http.response.start":
            await send(message)
            return

        headers = DAVHeaders(message.get("headers"))
        headers.update(self.cors_headers.data)

        # If we only allow specific origins, then we have to mirror back
        # the Origin header in the response.
        origin = request_headers.get(b"origin")
        if (
            origin is not None
            and not self.allow_all_origins
            and self.is_allowed_origin(origin)
        ):
            self.allow_explicit_origin(headers, origin)

        message["headers"] = headers.list()
        await send(message)

    @staticmethod
    def allow_explicit_origin(headers: DAVHeaders, origin: bytes) -> None:
        headers[b"Access-Control-Allow-Origin"] = origin

        vary = headers.get(b"Vary")
        if vary is not None:
            vary = b", ".join([vary, b"Origin"])
        else:
            vary = b"Origin"

        headers[b"Vary"] = vary
