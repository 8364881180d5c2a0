from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt

Duration = Union[PositiveInt, PositiveFloat]


class CourseCreate(BaseModel):
    """Body of POST /courses. Every field is required."""
    name: str = Field(..., min_length=1)
    duration: Duration


class CourseUpdate(BaseModel):
    """Body of PUT /courses/<id>. Only fields present are written."""
    name: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[Duration] = None


class Course(BaseModel):
    """
    A persisted course. ``id`` is the MongoDB ObjectId as a string and
    serializes back to ``_id``.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    name: str
    duration: Union[int, float]
