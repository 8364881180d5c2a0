from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from backend.api.error_handlers import validation_error_response
from backend.factories.service_factory import ServiceFactory
from shared.modules.records.models.course import CourseCreate, CourseUpdate

bp = Blueprint("course_controller", __name__, url_prefix="/courses")


@bp.route("", methods=["POST"])
def create_course():
    """
    Create a course and cache it.

    course_payload = {
        "name": "Algorithms",
        "duration": 40
    }
    """
    try:
        payload = CourseCreate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return validation_error_response("All fields are required: name and duration", e)

    course = ServiceFactory.create_course_service().create(payload)
    return jsonify(course.model_dump(by_alias=True)), 201


@bp.route("", methods=["GET"])
def list_courses():
    """
    List every course, or only those whose name contains ``?keyword=``
    (case-insensitive). Never served from the cache.
    """
    service = ServiceFactory.create_course_service()
    keyword = request.args.get("keyword")
    courses = service.search(keyword) if keyword else service.list_all()
    return jsonify([c.model_dump(by_alias=True) for c in courses]), 200


# Registered before /<course_id> so "stats" is never taken for an id
@bp.route("/stats", methods=["GET"])
def get_course_stats():
    stats = ServiceFactory.create_course_service().stats()
    return jsonify(stats), 200


@bp.route("/<course_id>", methods=["GET"])
def get_course(course_id):
    """
    Fetch a course, from Redis when cached, otherwise from MongoDB.
    """
    course = ServiceFactory.create_course_service().get(course_id)
    if course is None:
        return jsonify({"error": "Course not found"}), 404
    return jsonify(course.model_dump(by_alias=True)), 200


@bp.route("/<course_id>", methods=["PUT"])
def update_course(course_id):
    """
    Update the fields present in the body and refresh the cached course.
    """
    try:
        patch = CourseUpdate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return validation_error_response("Invalid course fields", e)

    course = ServiceFactory.create_course_service().update(course_id, patch)
    if course is None:
        return jsonify({"error": "Course not found"}), 404
    return jsonify(course.model_dump(by_alias=True)), 200


@bp.route("/<course_id>", methods=["DELETE"])
def delete_course(course_id):
    deleted = ServiceFactory.create_course_service().delete(course_id)
    if not deleted:
        return jsonify({"error": "Course not found"}), 404
    return jsonify({"message": "Course deleted successfully"}), 200
