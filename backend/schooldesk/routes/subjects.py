from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import db
from schooldesk.models import Subject, Teacher, TimetableSlot
from schooldesk_utils.access_control import get_school_class
from schooldesk_utils.decorators import role_and_school_required, school_required

subjects_bp = Blueprint('subjects', __name__)


def _check_teacher(teacher_id):
    if teacher_id in (None, ""):
        return None
    try:
        teacher_id = int(teacher_id)
    except (TypeError, ValueError):
        return False
    teacher = Teacher.query.filter_by(id=teacher_id, school_id=g.school_id).first()
    if not teacher:
        return False
    return teacher.id


@subjects_bp.route('/', methods=['GET'])
@jwt_required()
@school_required()
def list_subjects():
    class_id = request.args.get('classId', type=int)
    if not class_id:
        return jsonify({"error": "classId is required"}), 400

    subjects = Subject.query.filter_by(school_id=g.school_id, class_id=class_id).order_by(Subject.name).all()
    return jsonify([s.to_dict() for s in subjects]), 200


@subjects_bp.route('/', methods=['POST'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def create_subject():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    class_id = data.get('class_id')
    if not name or not class_id:
        return jsonify({"error": "name and class_id are required"}), 400

    try:
        class_id = int(class_id)
    except (TypeError, ValueError):
        return jsonify({"error": f"Invalid class_id '{class_id}'"}), 400
    get_school_class(class_id, g.school_id)
    teacher_id = _check_teacher(data.get('teacher_id'))
    if teacher_id is False:
        return jsonify({"error": "Teacher not found"}), 400

    subject = Subject(school_id=g.school_id, class_id=class_id, name=name, teacher_id=teacher_id)
    db.session.add(subject)
    db.session.commit()
    return jsonify({"success": True, "data": subject.to_dict()}), 201


@subjects_bp.route('/', methods=['PUT'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def update_subject():
    data = request.get_json(silent=True) or {}
    subject_id = data.get('id')
    if not subject_id:
        return jsonify({"error": "Subject ID is required"}), 400

    try:
        subject_id = int(subject_id)
    except (TypeError, ValueError):
        return jsonify({"error": f"Invalid subject id '{subject_id}'"}), 400

    subject = Subject.query.filter_by(id=subject_id, school_id=g.school_id).first()
    if not subject:
        return jsonify({"error": "Subject not found"}), 404

    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            return jsonify({"error": "Subject name cannot be empty"}), 400
        subject.name = name
    if 'teacher_id' in data:
        teacher_id = _check_teacher(data.get('teacher_id'))
        if teacher_id is False:
            return jsonify({"error": "Teacher not found"}), 400
        subject.teacher_id = teacher_id

    db.session.commit()
    return jsonify({"success": True, "data": subject.to_dict()}), 200


@subjects_bp.route('/', methods=['DELETE'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def delete_subject():
    subject_id = request.args.get('id', type=int)
    if not subject_id:
        return jsonify({"error": "Subject ID is required"}), 400

    subject = Subject.query.filter_by(id=subject_id, school_id=g.school_id).first()
    if not subject:
        return jsonify({"error": "Subject not found"}), 404

    # Slots that pointed at the subject read as breaks from now on.
    TimetableSlot.query.filter_by(subject_id=subject.id).update({"subject_id": None})
    db.session.delete(subject)
    db.session.commit()
    return jsonify({"success": True, "message": "Subject deleted successfully"}), 200
