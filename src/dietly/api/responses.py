"""Response envelopes shared by every endpoint."""

from collections.abc import Callable
from typing import TypeVar

from dietly.domain.models import Page

T = TypeVar("T")


def success(data: object = None, message: str | None = None) -> dict[str, object]:
    """Wrap a payload as ``{"success": true, "data": ...}``."""
    body: dict[str, object] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def paginated(page: Page[T], render: Callable[[T], object]) -> dict[str, object]:
    """Wrap one page of a listing with its pagination block."""
    return {
        "success": True,
        "data": [render(item) for item in page.items],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "pages": page.pages,
        },
    }


def failure(
    message: str, details: dict[str, object] | None = None
) -> dict[str, object]:
    """Build the error envelope."""
    body: dict[str, object] = {"success": False, "message": message}
    if details:
        body["details"] = details
    return body
