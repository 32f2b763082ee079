"""
Per-request context handed from the route layer to services.

Services never see the framework request object; everything they need from
it (client address, headers for customs, language, flow metrics) is copied
here by routes.dependencies.get_request_context().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from services.metrics import FlowMetrics

# Never forwarded to the customs backend
SENSITIVE_PAYLOAD_FIELDS = ("authPW", "oldAuthPW", "paymentToken")


@dataclass
class RequestContext:
    client_address: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    payload: Optional[dict[str, Any]] = None
    metrics: FlowMetrics = field(default_factory=FlowMetrics)
    is_suspicious: bool = False

    @property
    def accept_language(self) -> Optional[str]:
        return self.headers.get("accept-language")

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get("user-agent")

    def sanitized_payload(self) -> Optional[dict[str, Any]]:
        if self.payload is None:
            return None
        return {
            key: value
            for key, value in self.payload.items()
            if key not in SENSITIVE_PAYLOAD_FIELDS
        }

    def emit_metrics_event(self, event: str, **data: Any) -> None:
        self.metrics.emit(event, **data)
