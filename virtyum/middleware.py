import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("virtyum.access")

# ---------------------------------------------------------------------------
# Per-request context variable
# ---------------------------------------------------------------------------


class QueryCounter:
    """Mutable tally shared by every task spawned while handling a request."""

    __slots__ = ("value",)

    def __init__(self) -> None:
        self.value = 0


# The counter object (not an int) lives in the ContextVar so that child tasks,
# which receive a copy of the context, still increment the request's tally.
query_counter_var: ContextVar[QueryCounter | None] = ContextVar("query_counter", default=None)


def current_query_count() -> int:
    counter = query_counter_var.get()
    return counter.value if counter is not None else 0


def install_query_counter(engine) -> None:
    """
    Register a ``before_cursor_execute`` listener on *engine* that
    increments the current request's counter for every SQL statement.

    Must be called once per engine (production engine in ``database.py``,
    test engine in ``conftest.py``).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        counter = query_counter_var.get()
        if counter is not None:
            counter.value += 1


# ---------------------------------------------------------------------------
# Middleware (pure ASGI: avoids BaseHTTPMiddleware ContextVar isolation)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Pure ASGI middleware that adds two diagnostic response headers and
    writes one access-log line per HTTP request:

    - ``X-Response-Time-Ms``: wall-clock time until the response starts.
    - ``X-Query-Count``: SQL statements executed while handling the request,
      counted by the listener registered with ``install_query_counter``.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_counter_var.set(QueryCounter())
        start = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                queries = current_query_count()
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(queries).encode()))
                message["headers"] = headers
                logger.info(
                    "%s %s -> %s (%.2f ms, %d queries)",
                    scope["method"], scope["path"], message["status"], duration_ms, queries,
                    extra={
                        "method": scope["method"],
                        "path": scope["path"],
                        "status_code": message["status"],
                        "duration_ms": duration_ms,
                    },
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)
