from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional


class DepartmentUtilization(BaseModel):
    department: str
    leave_days: int
    employee_count: int


class EmployeeUtilization(BaseModel):
    name: str
    department: str
    leave_days: int
    leave_type: str


class LeaveTypeUsage(BaseModel):
    type: str
    count: int


class MonthlyUtilizationReport(BaseModel):
    year: int
    month: int
    department_data: List[DepartmentUtilization]
    employee_data: List[EmployeeUtilization]
    most_utilized_leave_type: Optional[LeaveTypeUsage] = None


class MonthSummary(BaseModel):
    month: int
    month_name: str
    department_data: List[DepartmentUtilization]
    most_utilized_leave_type: Optional[LeaveTypeUsage] = None


class YearlyUtilizationReport(BaseModel):
    year: int
    monthly_data: List[MonthSummary]


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_role: Optional[str] = None
    details: Optional[dict] = None
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    timestamp: Optional[datetime] = None
