import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from app.core.config import settings
from app.core.permissions import Role


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    role: Role = Role.RECEPTIONIST
    phone_number: Optional[str] = None
    pharmacy_branch: Optional[str] = None

    @field_validator('password')
    @classmethod
    def password_strength(cls, v: str) -> str:
        if len(v) < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {settings.MIN_PASSWORD_LENGTH} characters')
        if settings.REQUIRE_NUMBERS and not re.search(r'\d', v):
            raise ValueError('Password must contain a number')
        if settings.REQUIRE_SPECIAL_CHARS and not re.search(r'[^A-Za-z0-9]', v):
            raise ValueError('Password must contain a special character')
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    pharmacy_branch: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role
