# employee_api/schemas/schema.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from datetime import date, datetime


class EmployeeResponse(BaseModel):
    """Schema for employee response"""
    id: str = Field(..., description="Employee ID")
    first_name: str = Field(..., description="First name", examples=["John"])
    last_name: str = Field(..., description="Last name", examples=["Doe"])
    email: str = Field(..., description="Employee email", examples=["john.doe@example.com"])
    position: str = Field(..., description="Employee position", examples=["Software Engineer"])
    salary: float = Field(..., description="Employee salary", examples=[75000])
    date_of_joining: date = Field(..., description="Employee date of joining", examples=["2023-01-15"])
    department: str = Field(..., description="Employee department", examples=["Engineering"])
    profile_picture: Optional[str] = Field(None, description="Stored profile picture file name")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class EmployeeListResponse(BaseModel):
    status: bool = True
    data: List[EmployeeResponse]


class EmployeeSearchResponse(BaseModel):
    status: bool = True
    count: int = Field(..., description="Number of matching employees")
    data: List[EmployeeResponse]


class EmployeeDetailResponse(BaseModel):
    status: bool = True
    data: EmployeeResponse


class EmployeeCreatedResponse(BaseModel):
    message: str = Field(..., description="Response message")
    employee_id: str = Field(..., description="ID of the created employee")


class ResponseMessage(BaseModel):
    """Schema for response messages"""
    message: str = Field(..., description="Response message")


class UserOut(BaseModel):
    """Public view of a user"""
    id: str
    username: str
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class SignupResponse(BaseModel):
    message: str
    user_id: str


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class ErrorResponse(BaseModel):
    """Shape of every failed response"""
    status: bool = False
    message: str
