from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from backend.api.error_handlers import validation_error_response
from backend.factories.service_factory import ServiceFactory
from shared.modules.records.models.student import StudentCreate, StudentUpdate

bp = Blueprint("student_controller", __name__, url_prefix="/students")


@bp.route("", methods=["POST"])
def create_student():
    """
    Create a student and cache it.

    student_payload = {
        "name": "Ada",
        "age": 21,
        "courseIds": ["665f1c2e9b1e8a3d4c5b6a70"]
    }
    """
    try:
        payload = StudentCreate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return validation_error_response("All fields are required: name, age, and courseIds", e)

    student = ServiceFactory.create_student_service().create(payload)
    return jsonify(student.model_dump(by_alias=True)), 201


@bp.route("", methods=["GET"])
def list_students():
    service = ServiceFactory.create_student_service()
    keyword = request.args.get("keyword")
    students = service.search(keyword) if keyword else service.list_all()
    return jsonify([s.model_dump(by_alias=True) for s in students]), 200


@bp.route("/stats", methods=["GET"])
def get_student_stats():
    stats = ServiceFactory.create_student_service().stats()
    return jsonify(stats), 200


@bp.route("/<student_id>", methods=["GET"])
def get_student(student_id):
    student = ServiceFactory.create_student_service().get(student_id)
    if student is None:
        return jsonify({"error": "Student not found"}), 404
    return jsonify(student.model_dump(by_alias=True)), 200


@bp.route("/<student_id>", methods=["PUT"])
def update_student(student_id):
    """
    Update the fields present in the body. ``courseIds`` replaces the whole list.
    """
    try:
        patch = StudentUpdate.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return validation_error_response("Invalid student fields", e)

    student = ServiceFactory.create_student_service().update(student_id, patch)
    if student is None:
        return jsonify({"error": "Student not found"}), 404
    return jsonify(student.model_dump(by_alias=True)), 200


@bp.route("/<student_id>", methods=["DELETE"])
def delete_student(student_id):
    deleted = ServiceFactory.create_student_service().delete(student_id)
    if not deleted:
        return jsonify({"error": "Student not found"}), 404
    return jsonify({"message": "Student deleted successfully"}), 200
