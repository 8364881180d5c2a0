from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt

Age = Union[PositiveInt, PositiveFloat]


class StudentCreate(BaseModel):
    """Body of POST /students. ``courseIds`` may be empty but must be present."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    age: Age
    course_ids: List[str] = Field(..., alias="courseIds")


class StudentUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1)
    age: Optional[Age] = None
    course_ids: Optional[List[str]] = Field(default=None, alias="courseIds")


class Student(BaseModel):
    """A persisted student. Course ids keep their enrolment order."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    name: str
    age: Union[int, float]
    course_ids: List[str] = Field(default_factory=list, alias="courseIds")
