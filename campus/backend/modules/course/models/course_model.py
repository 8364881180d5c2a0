from backend.models.base_nosql_model import BaseNoSqlModel
from shared.modules.records.models.course import Course


class CourseModel(BaseNoSqlModel):
    """
    MongoDB persistence wrapper for Course records.
    Inherits common CRUD operations from BaseNoSqlModel.
    """

    collection_name = "courses"
    record_class = Course
