"""
Error type and async handler wrapper.

Every user-facing failure travels as an AppError carrying a message and an
HTTP status code. Route handlers are wrapped with catch_async so that any
other exception is turned into a 500 AppError before it reaches the
exception handlers registered in main.
"""
from functools import wraps
from typing import Optional

DEFAULT_MESSAGE = "Oh No, Something Went Wrong!"


class AppError(Exception):
    def __init__(self, message: Optional[str] = None, status_code: int = 500):
        super().__init__(message or "")
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"AppError(message={self.message!r}, status_code={self.status_code})"


def catch_async(handler):
    """Wrap an async route handler so any failure is forwarded as an AppError.

    AppErrors pass through untouched; anything else becomes a 500 with no
    message (the presenter shows DEFAULT_MESSAGE), chained to the original so
    the traceback is kept for logging. The wrapped signature is preserved for
    FastAPI's dependency injection.
    """

    @wraps(handler)
    async def wrapper(*args, **kwargs):
        try:
            return await handler(*args, **kwargs)
        except AppError:
            raise
        except Exception as e:
            raise AppError(status_code=500) from e

    return wrapper
