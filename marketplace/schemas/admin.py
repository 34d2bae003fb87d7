from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional

Role = Literal["admin", "user"]


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    role: Role = Field(alias="type")
    name: str = ""
    username: str
    password: Optional[str] = Field(default=None, exclude=True)

    @field_validator("role", mode="before")
    @classmethod
    def _lower_role(cls, value):
        return value.lower() if isinstance(value, str) else value

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: Optional[Role] = Field(default=None, alias="type")
    name: Optional[str] = None
    username: Optional[str] = None


class Feedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    message: str
    user_id: Optional[int] = Field(default=None, alias="userId")
    user_name: Optional[str] = Field(default=None, alias="userName")
    created_at: str = Field(alias="createdAt")


class AdminStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_value: float = Field(default=0, alias="totalValue")
    approved_count: int = Field(default=0, alias="approvedCount")
    pending_count: int = Field(default=0, alias="pendingCount")
    user_count: int = Field(default=0, alias="userCount")
