from pydantic import BaseModel, EmailStr, Field, field_validator


def _dedupe_ids(value: list[str]) -> list[str]:
    return list(dict.fromkeys(item.strip() for item in value if item and item.strip()))


class TeacherBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    is_active: bool = True


class TeacherCreate(TeacherBase):
    class_ids: list[str] = Field(default_factory=list, max_length=200)
    subject_ids: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("class_ids", "subject_ids")
    @classmethod
    def dedupe(cls, value: list[str]) -> list[str]:
        return _dedupe_ids(value)


class TeacherUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    is_active: bool | None = None
    class_ids: list[str] | None = Field(default=None, max_length=200)
    subject_ids: list[str] | None = Field(default=None, max_length=200)

    @field_validator("class_ids", "subject_ids")
    @classmethod
    def dedupe(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _dedupe_ids(value)


class TeacherOut(TeacherBase):
    id: str
    class_ids: list[str] = Field(default_factory=list)
    subject_ids: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class SchoolClassBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    form: str | None = Field(default=None, max_length=50)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Class name cannot be empty")
        return trimmed


class SchoolClassCreate(SchoolClassBase):
    subject_ids: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("subject_ids")
    @classmethod
    def dedupe(cls, value: list[str]) -> list[str]:
        return _dedupe_ids(value)


class SchoolClassUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    form: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None
    subject_ids: list[str] | None = Field(default=None, max_length=200)

    @field_validator("subject_ids")
    @classmethod
    def dedupe(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _dedupe_ids(value)


class SchoolClassOut(SchoolClassBase):
    id: str
    subject_ids: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    teaching_periods: int = Field(default=0, ge=0, le=60)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Subject code cannot be empty")
        return code


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    code: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None
    teaching_periods: int | None = Field(default=None, ge=0, le=60)
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return None if value is None else value.strip().upper()


class SubjectOut(SubjectBase):
    id: str

    model_config = {"from_attributes": True}
