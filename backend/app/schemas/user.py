from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.models.user import UserRole


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole
    teacher_id: str | None = Field(default=None, max_length=36)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("teacher_id")
    @classmethod
    def normalize_teacher_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)

    @model_validator(mode="after")
    def validate_teacher_link(self) -> "UserCreate":
        if self.role == UserRole.teacher and not self.teacher_id:
            raise ValueError("teacher_id is required for teacher accounts")
        if self.role != UserRole.teacher:
            self.teacher_id = None
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: UserRole | None = None
    teacher_id: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserOut(UserBase):
    id: str
    is_active: bool
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int
    user: UserOut
