"""Context propagation for structured logging.

Fields pushed here are attached to every log record emitted inside the
scope. Backed by contextvars, so each asyncio task (one per HTTP request,
one per retry sweep) sees its own context.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the current context; keep the token to restore it."""
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all context fields. Used by tests."""
    LogContextVar.set({})


class log_context:
    """Scoped logging context.

    Example:
        >>> with log_context(recipient="citizen@example.com", template="firFiled"):
        ...     logger.info("Sending notification")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
