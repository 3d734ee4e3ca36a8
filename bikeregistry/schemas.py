from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Field formats are checked by the route so errors come back as 400"""

    email: Optional[str] = None
    password: Optional[str] = None
    fullName: Optional[str] = None
    birthDate: Optional[date] = None
    curp: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class ResetPasswordRequest(BaseModel):
    email: str


class UpdatePasswordRequest(BaseModel):
    token: str
    password: str


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    birth_date: Optional[date] = None
    curp: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    birth_date: Optional[date]
    curp: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    role: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class AdminStatsResponse(BaseModel):
    total_users: int
    total_bicycles: int
    active_subscriptions: int
    stolen_bicycles: int
