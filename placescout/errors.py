"""Custom exception types for placescout."""

from __future__ import annotations

from typing import Optional


class _ContextError(Exception):
    """Base error carrying optional url/keyword/session context."""

    default_message = "placescout error."

    def __init__(
        self,
        message: str | None = None,
        *,
        url: Optional[str] = None,
        keyword: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.url = url
        self.keyword = keyword
        self.session_id = session_id
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.url:
            context_parts.append(f"url={self.url}")
        if self.keyword:
            context_parts.append(f"keyword={self.keyword}")
        if self.session_id:
            context_parts.append(f"session={self.session_id}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class NavigationError(_ContextError):
    """Raised when a single navigation attempt fails."""

    default_message = "Failed to load page."


class BrowserLaunchError(_ContextError):
    """Raised when no browser/page can be acquired for a session."""

    default_message = "Unable to launch browser."


class StoreError(_ContextError):
    """Raised when the persisted place store cannot be read or written."""

    default_message = "Place store unavailable."


class BatchRequestError(ValueError):
    """Raised when a batch request is missing its location or keywords."""
