from datetime import datetime
from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import db
from schooldesk.models import Teacher
from schooldesk_utils.decorators import role_and_school_required, school_required
from schooldesk_utils.pagination import apply_pagination_and_search

teachers_bp = Blueprint('teachers', __name__)

EMPLOYMENT_TYPES = {"full-time", "part-time", "contract"}


@teachers_bp.route('/', methods=['GET'])
@jwt_required()
@school_required()
def list_teachers():
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 50, type=int)
    search_term = request.args.get('search', type=str)

    query = Teacher.query.filter(Teacher.school_id == g.school_id).order_by(Teacher.full_name)
    paginated = apply_pagination_and_search(
        query,
        Teacher,
        search_term,
        search_columns=["full_name", "email", "employee_id"],
        page=page,
        per_page=per_page
    )

    return jsonify({
        "teachers": [t.to_dict() for t in paginated.items],
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages
    }), 200


@teachers_bp.route('/', methods=['POST'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def create_teacher():
    data = request.get_json(silent=True) or {}
    full_name = (data.get('full_name') or data.get('name') or '').strip()
    designation = data.get('designation') or data.get('employmentType') or 'full-time'

    if not full_name:
        return jsonify({"error": "Teacher name is required"}), 400
    if designation not in EMPLOYMENT_TYPES:
        return jsonify({"error": f"Invalid employment type '{designation}'"}), 400

    try:
        date_of_joining = (
            datetime.strptime(data['date_of_joining'], "%Y-%m-%d").date()
            if data.get('date_of_joining') else None
        )
    except ValueError as e:
        return jsonify({"error": "Invalid date_of_joining", "details": str(e)}), 400

    teacher = Teacher(
        school_id=g.school_id,
        full_name=full_name,
        email=data.get('email'),
        phone=data.get('phone') or data.get('mobile'),
        employee_id=data.get('employee_id'),
        designation=designation,
        date_of_joining=date_of_joining,
    )
    db.session.add(teacher)
    db.session.commit()
    return jsonify(teacher.to_dict()), 201
