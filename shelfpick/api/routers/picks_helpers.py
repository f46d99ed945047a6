# shelfpick/api/routers/picks_helpers.py
from __future__ import annotations

from shelfpick.api.problem import raise_problem
from shelfpick.services.pick_errors import PickError


def raise_pick_error(e: PickError) -> None:
    """PickError -> HTTPException carrying the Problem body."""
    raise_problem(
        status_code=e.http_status,
        error_code=e.code,
        message=e.message,
        context=e.context or None,
        details=e.details or None,
    )
