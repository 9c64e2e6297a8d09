from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1024)


class PublicUser(BaseModel):
    id: int
    email: str
    name: str
    role: Literal["admin", "editor"]


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: PublicUser


class MeResponse(BaseModel):
    success: bool = True
    user: PublicUser


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(
        default=None, alias="currentPassword", max_length=1024
    )
    new_password: Optional[str] = Field(
        default=None, alias="newPassword", max_length=1024
    )


class MessageResponse(BaseModel):
    success: bool = True
    message: str
