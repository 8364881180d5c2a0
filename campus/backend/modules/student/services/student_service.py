from backend.modules.cached_record_service import CachedRecordService
from shared.modules.records.enums.resource_type_enum import ResourceType


class StudentService(CachedRecordService):
    """Cache-aside access to students, cached under ``student:<id>``."""

    resource = ResourceType.STUDENT
    count_label = "totalStudents"
    average_field = "age"
    average_label = "averageAge"
