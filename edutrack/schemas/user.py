from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional

from edutrack.schemas.student import RequiredText
from edutrack.utils.push import is_expo_push_token

Role = Literal["teacher", "parent", "student"]

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: RequiredText
    role: Role
    phone: str = ""

    class Config:
        extra = "forbid"

class LoginRequest(BaseModel):
    # plain string: a malformed email is just another failed login
    email: str
    password: str

class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    phone: str = ""

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut

class MeResponse(BaseModel):
    user: UserOut

class PushTokenUpdate(BaseModel):
    push_token: Optional[str] = Field(alias="pushToken")

    @field_validator("push_token")
    @classmethod
    def _expo_token(cls, value):
        if value is not None and not is_expo_push_token(value):
            raise ValueError("not an Expo push token")
        return value

    class Config:
        extra = "forbid"
        populate_by_name = True
