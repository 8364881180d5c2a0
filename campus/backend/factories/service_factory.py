"""
Service Factory for creating resource services with their dependencies.
"""
from flask import current_app

from backend.database.context import DatabaseContext
from backend.modules.course.models.course_model import CourseModel
from backend.modules.course.services.course_service import CourseService
from backend.modules.student.models.student_model import StudentModel
from backend.modules.student.services.student_service import StudentService


class ServiceFactory:
    """
    Factory for creating service instances with injected dependencies.
    Must be called inside a Flask application or request context.
    """

    @staticmethod
    def _cache_ttl() -> int:
        return current_app.config["SETTINGS"].cache_ttl_seconds

    @staticmethod
    def create_course_service() -> CourseService:
        model = CourseModel(DatabaseContext.get_document_store())
        return CourseService(model, DatabaseContext.get_cache_store(), ServiceFactory._cache_ttl())

    @staticmethod
    def create_student_service() -> StudentService:
        model = StudentModel(DatabaseContext.get_document_store())
        return StudentService(model, DatabaseContext.get_cache_store(), ServiceFactory._cache_ttl())
