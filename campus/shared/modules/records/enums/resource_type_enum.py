from enum import Enum

class ResourceType(str, Enum):
    COURSE = "course"
    STUDENT = "student"
