from pydantic import BaseModel, Field


class ClassSectionBase(BaseModel):
    class_name: str = Field(min_length=1, max_length=100)
    class_code: str = Field(min_length=1, max_length=50)
    academic_year: str = Field(min_length=1, max_length=20)
    strength: int = Field(default=0, ge=0, le=1000)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool = True


class ClassSectionCreate(ClassSectionBase):
    pass


class ClassSectionUpdate(BaseModel):
    class_name: str | None = Field(default=None, min_length=1, max_length=100)
    class_code: str | None = Field(default=None, min_length=1, max_length=50)
    academic_year: str | None = Field(default=None, min_length=1, max_length=20)
    strength: int | None = Field(default=None, ge=0, le=1000)
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class ClassSectionOut(ClassSectionBase):
    id: str

    model_config = {"from_attributes": True}
