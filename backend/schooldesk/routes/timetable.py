from flask import Blueprint, request, jsonify, g
from flask_jwt_extended import jwt_required
from schooldesk.extensions import limiter
from schooldesk.services.timetable import list_slots, upsert_slot
from schooldesk_utils.access_control import get_school_class
from schooldesk_utils.decorators import role_and_school_required, school_required

timetable_bp = Blueprint('timetable', __name__)


@timetable_bp.route('/slots', methods=['POST'])
@limiter.limit("60 per minute")
@jwt_required()
@role_and_school_required('superuser', 'admin')
def create_slot():
    data = request.get_json(silent=True) or {}
    class_id = data.get("classId")

    if not class_id or not data.get("day") or not data.get("startTime") or not data.get("endTime"):
        return jsonify({"error": "Missing required fields"}), 400

    try:
        class_id = int(class_id)
    except (TypeError, ValueError):
        return jsonify({"error": f"Invalid classId '{class_id}'"}), 400
    get_school_class(class_id, g.school_id)

    slot = upsert_slot(
        class_id,
        data.get("day"),
        data.get("startTime"),
        data.get("endTime"),
        subject_id=data.get("subjectId"),
        custom_name=data.get("customName"),
    )
    return jsonify({"success": True, "data": slot.to_dict()}), 200


@timetable_bp.route('/slots', methods=['GET'])
@jwt_required()
@school_required()
def get_slots():
    class_id = request.args.get("classId", type=int)
    if not class_id:
        return jsonify({"error": "classId is required"}), 400

    get_school_class(class_id, g.school_id)
    return jsonify(list_slots(class_id)), 200
