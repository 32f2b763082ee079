"""Select the customs strategy once, at startup."""

from __future__ import annotations

from config import CustomsSettings
from infrastructure.customs.disabled import DisabledCustomsGate
from infrastructure.customs.http_gate import HttpCustomsGate
from infrastructure.customs.protocol import CustomsGate
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)


def build_customs_gate(settings: CustomsSettings) -> CustomsGate:
    if not settings.enabled:
        log.info("customs_disabled")
        return DisabledCustomsGate()

    http = HttpClient(
        timeout=settings.customs_timeout_seconds,
        base_url=settings.customs_url,
        service="customs",
    )
    log.info("customs_enabled", url=settings.customs_url)
    return HttpCustomsGate(http)
