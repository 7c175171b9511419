# storefront/errors.py
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    pass


class ApiError(StorefrontError):
    """A failed API call, classified the way the views need to report it.

    ``kind`` is one of ``http``, ``unauthorized``, ``csrf``, ``network``,
    ``rate_limit``, ``validation`` or ``server``.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        kind: str = "http",
        errors: Optional[Dict[str, List[str]]] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.kind = kind
        self.errors = errors or {}
        self.payload = payload

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code}, kind={self.kind!r}, message={self.message!r})"


class VariantGenerationError(StorefrontError):
    pass


def format_error(exc: BaseException) -> str:
    if isinstance(exc, ApiError):
        if exc.errors:
            lines = []
            for field, messages in exc.errors.items():
                if not isinstance(messages, (list, tuple)):
                    messages = [messages]
                lines.append(f"{field}: {', '.join(str(m) for m in messages)}")
            return "; ".join(lines)
        return exc.message
    text = str(exc)
    return text or "An unexpected error occurred"
