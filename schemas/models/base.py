"""
Base model for all MongoDB document models.

Every document is keyed by a hex string ``_id`` (token ids are SHA-256 of the
bearer secret; account uids are 16 random bytes). MongoBaseModel provides
to_mongo() / from_mongo() for round-tripping between Python objects and raw
MongoDB dicts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware_utc(dt: datetime) -> datetime:
    """MongoDB returns naive datetimes unless tz_aware is set; treat them as UTC."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


class MongoBaseModel(BaseModel):
    """
    Base for all document models.

    to_mongo() converts model → dict suitable for pymongo insert/update
    from_mongo() converts raw pymongo dict → model instance (returns None
                 gracefully when passed None)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")

    def to_mongo(self) -> dict:
        """Return a dict ready for MongoDB insertion (``id`` → ``_id``)."""
        return self.model_dump(by_alias=True, exclude_none=False)

    @classmethod
    def from_mongo(cls, data: Optional[dict]):
        """Build a model instance from a raw MongoDB document dict.

        Returns None when data is None (e.g. find_one returns None).
        """
        if data is None:
            return None
        return cls.model_validate(data)
