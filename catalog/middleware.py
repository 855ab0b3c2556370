import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Receive, Scope, Send

# ---------------------------------------------------------------------------
# Per-request query counter
# ---------------------------------------------------------------------------


class QueryCounter:
    """
    Mutable holder for the number of SQL statements issued in one request.

    The context variable stores the holder itself rather than an ``int``:
    relation loaders run in child tasks created by ``asyncio.gather``, and
    each child task works on a *copy* of the parent context.  Rebinding the
    variable inside a child would be invisible to the middleware, while
    mutating the shared holder is not.
    """

    __slots__ = ("value",)

    def __init__(self) -> None:
        self.value = 0

    def increment(self) -> None:
        self.value += 1


query_counter_var: ContextVar[QueryCounter | None] = ContextVar("query_counter", default=None)


def start_query_count() -> QueryCounter:
    """Bind a fresh counter to the current context and return it."""
    counter = QueryCounter()
    query_counter_var.set(counter)
    return counter


def install_query_counter(engine) -> None:
    """
    Register a ``before_cursor_execute`` event listener on *engine* that
    increments the counter bound to the current context for every SQL
    statement.

    Must be called once per engine (production engine in ``database.py``,
    test engine in ``conftest.py``).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        counter = query_counter_var.get()
        if counter is not None:
            counter.increment()


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, avoids BaseHTTPMiddleware ContextVar isolation)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Pure ASGI middleware that adds two diagnostic response headers:

    - ``X-Response-Time-Ms``: wall-clock time for the entire request.
    - ``X-Query-Count``: total SQL statements executed during the request,
      including those issued concurrently by the relation loaders.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        counter = start_query_count()
        start = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(counter.value).encode()))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
