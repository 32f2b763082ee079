"""Flow event emission.

Flow events are structured log lines (``flow_event``) that downstream
analytics join on ``flow_id``. They never fail a request.
"""

from __future__ import annotations

import time
from typing import Any, Optional

from schemas.models.metrics import MetricsContext
from shared.logging import get_logger, hash_ip, should_sample

log = get_logger(__name__)


class FlowMetrics:
    def __init__(
        self,
        context: Optional[MetricsContext] = None,
        client_address: Optional[str] = None,
    ) -> None:
        self.context = context
        self.client_address = client_address
        self.emitted: list[str] = []

    def use_context(self, context: Optional[MetricsContext]) -> None:
        """Adopt a stashed context unless the request carried its own."""
        if context is not None and (self.context is None or not self.context.flow_id):
            self.context = context

    def emit(self, event: str, **data: Any) -> None:
        self.emitted.append(event)
        if not should_sample("flow_event"):
            return

        fields: dict[str, Any] = {"flow_event_name": event, **data}
        if self.context is not None:
            fields["flow_id"] = self.context.flow_id
            fields["device_id"] = self.context.device_id
            if self.context.flow_begin_time:
                fields["flow_time"] = max(
                    int(time.time() * 1000) - self.context.flow_begin_time, 0
                )
        if self.client_address:
            fields["ip_hash"] = hash_ip(self.client_address)
        log.info("flow_event", **fields)
