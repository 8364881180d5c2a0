from backend.models.base_nosql_model import BaseNoSqlModel
from shared.modules.records.models.student import Student


class StudentModel(BaseNoSqlModel):
    """
    MongoDB persistence wrapper for Student records.
    ``courseIds`` is stored as an ordered array of course id strings.
    """

    collection_name = "students"
    record_class = Student
