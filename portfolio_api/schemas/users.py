from pydantic import BaseModel, ConfigDict, Field

from portfolio_api.schemas.auth import PublicUser


class UserListResponse(BaseModel):
    success: bool = True
    users: list[PublicUser]


class UserDetailResponse(BaseModel):
    success: bool = True
    user: PublicUser


class UserActiveUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(alias="isActive")
