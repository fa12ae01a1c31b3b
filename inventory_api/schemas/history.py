from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime, timezone
from typing import Optional


class HistoryEntryResponse(BaseModel):
    """Schema for a single inventory history entry."""
    id: int
    product_id: int
    old_quantity: int
    new_quantity: int
    change_date: datetime
    user_info: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("change_date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; every change_date is written in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class HistoryListResponse(BaseModel):
    """History entries, most recent first."""
    history: list[HistoryEntryResponse]
