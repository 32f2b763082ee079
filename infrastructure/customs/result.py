"""
Interpretation of a customs check response.

The backend only answers; deciding what a block means for the request
(metrics event, which error, localized retry estimate) happens here.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from errors import RequestBlockedError, TooManyRequestsError
from services.context import RequestContext
from shared.l10n import localize_retry_after
from shared.logging import get_logger, should_sample

log = get_logger(__name__)


class CustomsCheckResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block: bool
    block_reason: Optional[str] = Field(default=None, alias="blockReason")
    suspect: Optional[bool] = None
    unblock: Optional[bool] = None
    retry_after: Optional[int] = Field(default=None, alias="retryAfter", ge=0)


def report_check(name: str, action: str, result: CustomsCheckResult) -> None:
    # The action and block values are always reported, the rest only when sent
    if not should_sample("customs_check"):
        return
    tags: dict = {"check": name, "action": action, "block": result.block}
    if result.unblock is not None:
        tags["unblock"] = result.unblock
    if result.suspect is not None:
        tags["suspect"] = result.suspect
    if result.block_reason is not None:
        tags["block_reason"] = result.block_reason
    log.info("customs_check", **tags)


def handle_customs_result(context: RequestContext, result: CustomsCheckResult) -> None:
    """Annotate the request and raise when the backend says block."""
    if result.suspect:
        context.is_suspicious = True

    if not result.block:
        return

    context.emit_metrics_event("customs.blocked")
    can_unblock = bool(result.unblock)

    if result.retry_after:
        raise TooManyRequestsError(
            retry_after=result.retry_after,
            retry_after_localized=localize_retry_after(
                result.retry_after, context.accept_language
            ),
            can_unblock=can_unblock,
        )

    raise RequestBlockedError(can_unblock=can_unblock)
