from datetime import datetime
from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import db
from schooldesk.models import Student, Section
from schooldesk_utils.access_control import get_school_class
from schooldesk_utils.decorators import role_and_school_required, school_required
from schooldesk_utils.pagination import apply_pagination_and_search

students_bp = Blueprint("students", __name__)


@students_bp.route('/', methods=['GET'])
@jwt_required()
@school_required()
def list_students():
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", 50, type=int)
    search_term = request.args.get("search", type=str)
    class_id = request.args.get("class_id", type=int)
    section_id = request.args.get("section_id", type=int)

    query = Student.query.filter(
        Student.school_id == g.school_id,
        Student.is_active.is_(True)
    )
    if class_id:
        query = query.filter(Student.class_id == class_id)
    if section_id:
        query = query.filter(Student.section_id == section_id)
    query = query.order_by(Student.roll_number.asc(), Student.id.asc())

    paginated = apply_pagination_and_search(query, Student, search_term, ["full_name"], page, per_page)

    return jsonify({
        "students": [s.to_dict() for s in paginated.items],
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages
    }), 200


@students_bp.route('/', methods=['POST'])
@jwt_required()
@role_and_school_required("superuser", "admin")
def create_student():
    data = request.get_json(silent=True) or {}
    full_name = (data.get("full_name") or data.get("name") or "").strip()
    class_id = data.get("class_id")
    section_id = data.get("section_id")

    if not full_name or not class_id:
        return jsonify({"error": "Missing required fields"}), 400

    try:
        class_id = int(class_id)
        section_id = int(section_id) if section_id else None
        roll_number = int(data["roll_number"]) if data.get("roll_number") not in (None, "") else None
        admission_date = (
            datetime.strptime(data["admission_date"], "%Y-%m-%d").date()
            if data.get("admission_date") else datetime.utcnow().date()
        )
    except (TypeError, ValueError) as e:
        return jsonify({"error": "Invalid input types", "details": str(e)}), 400

    get_school_class(class_id, g.school_id)
    if section_id and not Section.query.filter_by(id=section_id, class_id=class_id).first():
        return jsonify({"error": f"Section {section_id} not found in class {class_id}"}), 400

    student = Student(
        school_id=g.school_id,
        class_id=class_id,
        section_id=section_id,
        full_name=full_name,
        roll_number=roll_number,
        admission_date=admission_date,
    )
    db.session.add(student)
    db.session.commit()

    return jsonify({"success": True, "data": student.to_dict()}), 201
