from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from schooldesk_utils.decorators import role_required, load_current_user
from schooldesk_utils.access_control import get_allowed_school_ids
from schooldesk.models import School, Student, Teacher, SchoolClass, User
from schooldesk.extensions import db

schools_bp = Blueprint('schools', __name__)


@schools_bp.route('/', methods=['GET'])
@jwt_required()
def list_schools():
    user = load_current_user()
    if not user:
        return jsonify({"error": "Unauthorized", "message": "User not found"}), 401

    school_ids = get_allowed_school_ids(user)
    schools = School.query.filter(School.id.in_(school_ids)).order_by(School.name).all()
    return jsonify({"success": True, "data": [s.to_dict() for s in schools]}), 200


@schools_bp.route('/', methods=['POST'])
@jwt_required()
@role_required('superuser')
def create_school():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({"error": "School name is required"}), 400

    school = School(
        name=name,
        address=data.get('address'),
        phone=data.get('phone'),
        email=data.get('email'),
    )
    db.session.add(school)
    db.session.commit()
    return jsonify({"success": True, "data": school.to_dict()}), 201


@schools_bp.route('/summary', methods=['GET'])
@jwt_required()
@role_required('superuser', 'admin')
def schools_summary():
    user = load_current_user()
    requested = request.args.getlist('school_id', type=int)
    try:
        school_ids = get_allowed_school_ids(user, requested)
    except PermissionError as e:
        return jsonify({"error": str(e)}), 403

    schools = School.query.filter(School.id.in_(school_ids)).order_by(School.name).all()

    result = []
    for school in schools:
        school_data = school.to_dict()
        school_data["stats"] = {
            "class_count": SchoolClass.query.filter_by(school_id=school.id).count(),
            "student_count": Student.query.filter_by(school_id=school.id, is_active=True).count(),
            "teacher_count": Teacher.query.filter_by(school_id=school.id, is_active=True).count(),
            "user_count": User.query.filter_by(school_id=school.id).count(),
        }
        result.append(school_data)
    return jsonify(result), 200
