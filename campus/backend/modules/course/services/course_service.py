from backend.modules.cached_record_service import CachedRecordService
from shared.modules.records.enums.resource_type_enum import ResourceType


class CourseService(CachedRecordService):
    """
    Cache-aside access to courses. Single courses live in Redis under
    ``course:<id>``; lists, searches and stats always read MongoDB.
    """

    resource = ResourceType.COURSE
    count_label = "totalCourses"
    average_field = "duration"
    average_label = "averageDuration"
