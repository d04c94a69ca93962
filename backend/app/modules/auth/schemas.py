from typing import Literal

from pydantic import BaseModel, Field

UserRole = Literal["admin", "child"]


class RegisterRequest(BaseModel):
    name: str = Field(..., max_length=120)
    password: str = Field(..., max_length=200)
    role: UserRole


class RegisterResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    name: str = Field(..., max_length=120)
    password: str = Field(..., max_length=200)


class UserOut(BaseModel):
    id: int
    name: str
    role: UserRole


class TokenResponse(BaseModel):
    accessToken: str
    tokenType: str = "bearer"
    expiresIn: int
    user: UserOut
