# app/core/db.py
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine, URL

from .config import settings
from .logger import logger


def build_engine() -> Engine:
    url = URL.create(
        "postgresql+psycopg2",
        username=settings.PG_USER,
        password=settings.PG_PASSWORD,
        host=settings.PG_HOST,
        port=settings.PG_PORT,
        database=settings.PG_DB,
    )
    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        connect_args={
            "sslmode": settings.PG_SSLMODE,
            "options": (
                f"-c search_path={settings.PG_SCHEMA} "
                f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
            ),
        },
    )


def instrument(target: Engine) -> Engine:
    """Log statements slower than SLOW_QUERY_MS (statement text only, never parameters)."""

    @event.listens_for(target, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start", []).append(time.perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _end(conn, cursor, statement, parameters, context, executemany):
        started = conn.info["query_start"].pop()
        duration_ms = (time.perf_counter() - started) * 1000
        if duration_ms > settings.SLOW_QUERY_MS:
            logger.warning(
                "Slow query",
                extra={"meta": {
                    "statement": " ".join(statement.split())[:500],
                    "duration_ms": round(duration_ms, 1),
                    "rows": cursor.rowcount,
                }},
            )

    return target


engine: Engine = instrument(build_engine())


@contextmanager
def get_conn() -> Iterator[Connection]:
    """One connection, one transaction: commit on success, rollback on error."""
    with engine.begin() as conn:
        yield conn
