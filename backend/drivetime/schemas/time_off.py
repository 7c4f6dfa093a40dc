from pydantic import BaseModel, model_validator
import uuid
from datetime import date as Date, datetime as DateTime
from typing import Literal, Optional


class TimeOffRequestCreate(BaseModel):
    request_type: Literal["holiday", "sick", "personal", "other"] = "holiday"
    start_date: Date
    end_date: Date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self) -> "TimeOffRequestCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TimeOffReview(BaseModel):
    review_note: Optional[str] = None


class TimeOffRequestOut(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    driver_id: uuid.UUID
    request_type: str
    start_date: Date
    end_date: Date
    reason: Optional[str]
    status: str
    reviewed_by: Optional[uuid.UUID]
    reviewed_at: Optional[DateTime]
    review_note: Optional[str]
    created_at: DateTime

    model_config = {"from_attributes": True}
