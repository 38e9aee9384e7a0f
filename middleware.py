"""
HTTP method normalization: form method override and HEAD requests.

Browsers can only submit GET and POST, so edit and delete forms post to
"...?_method=PUT" or "...?_method=DELETE". The middleware rewrites the request
method before routing.
"""
from urllib.parse import parse_qsl

ALLOWED_OVERRIDES = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware:
    def __init__(self, app, param: str = "_method") -> None:
        self.app = app
        self.param = param

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["method"] == "POST":
            query = parse_qsl(scope.get("query_string", b"").decode("latin-1"))
            override = dict(query).get(self.param, "").upper()
            if override in ALLOWED_OVERRIDES:
                scope = dict(scope, method=override)
        await self.app(scope, receive, send)


class HeadMiddleware:
    """Answer HEAD with the headers of the matching GET and an empty body."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "HEAD":
            await self.app(scope, receive, send)
            return

        async def send_headers_only(message):
            if message["type"] == "http.response.body":
                message = {**message, "body": b""}
            await send(message)

        await self.app(dict(scope, method="GET"), receive, send_headers_only)
