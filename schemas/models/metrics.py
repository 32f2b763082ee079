"""
Flow metrics context.

Clients open a "flow" (sign-in, password reset, ...) and send its id with the
first request. The server stashes the context against the token it issues
so later requests bearing that token report into the same flow.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MetricsContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    flow_id: Optional[str] = Field(default=None, alias="flowId", pattern=r"^[0-9a-fA-F]{64}$")
    flow_begin_time: Optional[int] = Field(default=None, alias="flowBeginTime", ge=0)
    device_id: Optional[str] = Field(default=None, alias="deviceId", pattern=r"^[0-9a-fA-F]{32}$")
    entrypoint: Optional[str] = Field(default=None, max_length=128)
    utm_campaign: Optional[str] = Field(default=None, alias="utmCampaign", max_length=128)
    utm_content: Optional[str] = Field(default=None, alias="utmContent", max_length=128)
    utm_medium: Optional[str] = Field(default=None, alias="utmMedium", max_length=128)
    utm_source: Optional[str] = Field(default=None, alias="utmSource", max_length=128)
    utm_term: Optional[str] = Field(default=None, alias="utmTerm", max_length=128)
