from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from typing import List, Optional

from lfap.models.leave_request import LeaveStatus


class LeaveRequestCreate(BaseModel):
    leave_type: str = Field(min_length=1, max_length=50)
    start_date: date
    end_date: date
    reason: str = Field(min_length=10, max_length=500)
    supporting_doc: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class LeaveRequestEdit(LeaveRequestCreate):
    pass


class LeaveActionRequest(BaseModel):
    action: str
    manager_comments: Optional[str] = None
    manager_id: Optional[int] = None


class PersonSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    department: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    leave_type: str
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    supporting_doc: Optional[str] = None
    manager_comments: Optional[str] = None
    manager_id: Optional[int] = None
    department: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeaveRequestListItem(LeaveRequestResponse):
    employee: PersonSummary
    manager: Optional[PersonSummary] = None


class LeaveBalanceResponse(BaseModel):
    type: str
    total: int
    used: int
    remaining: int


class LeaveBalancesResponse(BaseModel):
    leave_balances: List[LeaveBalanceResponse]
    user_sex: Optional[str] = None
