from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from lfap.models.user import Sex, UserRole
from datetime import datetime


class UserBase(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    role: UserRole
    department: Optional[str] = None
    sex: Sex


class RegisterRequest(UserBase):
    department: str = Field(min_length=1)
    password: str = Field(min_length=8)


class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SessionResponse(BaseModel):
    is_logged_in: bool
    user: Optional[UserResponse] = None
    expires_at: Optional[datetime] = None
