"""Loguru setup for the lead engine.

Engine code logs snake_case event names with bound fields, e.g.
``logger.bind(batch_id=batch_id, chunks=3).info("batch_persisted")``. Every
record also carries the request and acting employee ids of the HTTP call
that produced it.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from sys import stdout
from typing import Any

from loguru import logger

from leadengine.core.config import settings

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
actor_id_ctx_var: ContextVar[str] = ContextVar("actor_id", default="-")

_NOISY_LOGGERS = ("sqlalchemy.engine", "aiomysql", "multipart")


def _with_request_context(record: dict[str, Any]) -> None:
    extra = record["extra"]
    extra.setdefault("request_id", request_id_ctx_var.get())
    extra.setdefault("actor_id", actor_id_ctx_var.get())


def setup_logging() -> None:
    """Route engine logs to stdout; JSON lines unless ``DEBUG`` is on."""

    logging.basicConfig(level=settings.LOG_LEVEL)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()
    logger.configure(patcher=_with_request_context)
    if settings.DEBUG:
        logger.add(
            stdout,
            level="DEBUG",
            format="{time:HH:mm:ss} | {level: <7} | {extra[request_id]} | {message} | {extra}",
        )
        return
    logger.add(
        stdout,
        level=settings.LOG_LEVEL,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        serialize=True,
    )
