from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import db
from schooldesk.models import SchoolClass, Section
from schooldesk_utils.access_control import get_school_class
from schooldesk_utils.decorators import role_and_school_required, school_required

classes_bp = Blueprint('classes', __name__)
sections_bp = Blueprint('sections', __name__)


@classes_bp.route('/', methods=['GET'])
@jwt_required()
@school_required()
def list_classes():
    classes = SchoolClass.query.filter_by(school_id=g.school_id).order_by(SchoolClass.name).all()
    return jsonify([c.to_dict() for c in classes]), 200


@classes_bp.route('/', methods=['POST'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def create_class():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({"error": "Class name is required"}), 400

    if SchoolClass.query.filter_by(school_id=g.school_id, name=name).first():
        return jsonify({"error": f"Class '{name}' already exists"}), 409

    school_class = SchoolClass(school_id=g.school_id, name=name)
    db.session.add(school_class)
    db.session.commit()
    return jsonify({"success": True, "data": school_class.to_dict()}), 201


@sections_bp.route('/', methods=['GET'])
@jwt_required()
@school_required()
def list_sections():
    class_id = request.args.get("class_id", type=int)
    if not class_id:
        return jsonify({"error": "Class ID is required"}), 400

    get_school_class(class_id, g.school_id)
    sections = Section.query.filter_by(class_id=class_id).order_by(Section.name).all()
    return jsonify([s.to_dict() for s in sections]), 200


@sections_bp.route('/', methods=['POST'])
@jwt_required()
@role_and_school_required('superuser', 'admin')
def create_section():
    data = request.get_json(silent=True) or {}
    class_id = data.get('class_id')
    name = (data.get('name') or '').strip()
    if not class_id or not name:
        return jsonify({"error": "class_id and name are required"}), 400

    get_school_class(int(class_id), g.school_id)
    section = Section(school_id=g.school_id, class_id=int(class_id), name=name)
    db.session.add(section)
    db.session.commit()
    return jsonify({"success": True, "data": section.to_dict()}), 201
