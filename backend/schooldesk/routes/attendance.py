from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import limiter
from schooldesk.errors import ValidationError
from schooldesk.services.attendance import (
    delete_student_attendance,
    query_student_attendance,
    query_teacher_attendance,
    read_attendance_upload,
    serialize_student_mark,
    serialize_teacher_mark,
    submit_student_attendance,
    submit_teacher_attendance,
)
from schooldesk_utils.access_control import get_school_class
from schooldesk_utils.audit import log_event
from schooldesk_utils.decorators import role_and_school_required, school_required

attendance_bp = Blueprint('attendance', __name__)

MARKING_ROLES = ('superuser', 'admin')


def _class_id(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid class_id '{value}'")


@attendance_bp.route('/students', methods=['POST'])
@limiter.limit("60 per minute")
@jwt_required()
@role_and_school_required(*MARKING_ROLES)
def save_student_attendance():
    data = request.get_json(silent=True) or {}
    class_id = _class_id(data.get("class_id"))
    attendance = data.get("attendance")

    if not class_id or not isinstance(attendance, list):
        return jsonify({"error": "Invalid request data", "message": "class_id and attendance list are required"}), 400

    get_school_class(class_id, g.school_id)
    marks = submit_student_attendance(attendance, g.school_id, g.current_user.id)

    log_event(
        "STUDENT_ATTENDANCE_SAVED",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"{len(marks)} marks for class {class_id}",
    )
    return jsonify({
        "message": "Attendance saved successfully",
        "data": [serialize_student_mark(mark) for mark in marks]
    }), 200


@attendance_bp.route('/students', methods=['GET'])
@jwt_required()
@school_required()
def list_student_attendance():
    class_id = _class_id(request.args.get("class_id"))
    if class_id:
        get_school_class(class_id, g.school_id)

    marks = query_student_attendance(
        g.school_id,
        class_id=class_id,
        section_id=request.args.get("section_id", type=int),
        mark_date=request.args.get("date"),
        start_date=request.args.get("start_date"),
        end_date=request.args.get("end_date"),
    )
    return jsonify([serialize_student_mark(mark) for mark in marks]), 200


@attendance_bp.route('/students', methods=['DELETE'])
@jwt_required()
@role_and_school_required(*MARKING_ROLES)
def remove_student_attendance():
    deleted = delete_student_attendance(
        g.school_id,
        request.args.get("student_id"),
        request.args.get("date"),
    )
    if not deleted:
        return jsonify({"error": "Attendance record not found"}), 404

    log_event(
        "STUDENT_ATTENDANCE_DELETED",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"student {request.args.get('student_id')} on {request.args.get('date')}",
    )
    return jsonify({"message": "Attendance deleted successfully"}), 200


@attendance_bp.route('/students/bulkupload', methods=['POST'])
@limiter.limit("10 per minute")
@jwt_required()
@role_and_school_required(*MARKING_ROLES)
def bulk_upload_student_attendance():
    if 'file' not in request.files:
        return jsonify({"error": "Missing CSV/XLSX file"}), 400

    class_id = _class_id(request.form.get("class_id"))
    if class_id:
        get_school_class(class_id, g.school_id)

    records = read_attendance_upload(request.files['file'])
    marks = submit_student_attendance(records, g.school_id, g.current_user.id)

    log_event(
        "STUDENT_ATTENDANCE_UPLOADED",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"{len(marks)} marks from {request.files['file'].filename}",
    )
    return jsonify({
        "message": f"{len(marks)} attendance records saved",
        "data": [serialize_student_mark(mark) for mark in marks]
    }), 201


@attendance_bp.route('/teachers', methods=['POST'])
@limiter.limit("60 per minute")
@jwt_required()
@role_and_school_required(*MARKING_ROLES)
def save_teacher_attendance():
    data = request.get_json(silent=True) or {}
    result = submit_teacher_attendance(
        data.get("attendanceData"),
        data.get("date"),
        g.school_id,
        data.get("marked_by_admin_id"),
    )

    log_event(
        "TEACHER_ATTENDANCE_SAVED",
        user_id=g.current_user.id,
        ip=request.remote_addr,
        description=f"{result['count']} marks for {result['date'] or 'multiple dates'}",
    )
    return jsonify({
        "message": "Attendance records saved successfully",
        "data": result
    }), 200


@attendance_bp.route('/teachers', methods=['GET'])
@jwt_required()
@school_required()
def list_teacher_attendance():
    marks = query_teacher_attendance(
        g.school_id,
        mark_date=request.args.get("date"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
    )
    return jsonify({
        "data": [serialize_teacher_mark(mark) for mark in marks],
        "message": "Attendance records fetched successfully"
    }), 200
