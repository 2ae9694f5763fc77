from flask import Blueprint, request, jsonify, current_app, make_response
from flask_jwt_extended import (
    create_access_token, create_refresh_token, jwt_required,
    get_jwt_identity, get_jwt
)
from schooldesk.models import User, Role, School, TokenBlocklist
from schooldesk.extensions import db, limiter
from schooldesk_utils.audit import log_event
from schooldesk_utils.decorators import load_current_user
from datetime import datetime, timedelta
import re

auth_bp = Blueprint('auth', __name__)
PRIVILEGED_ROLES = {"superuser"}
ACCESS_TOKEN_TTL = timedelta(hours=1)
REFRESH_TOKEN_TTL = timedelta(days=7)


def _access_token_for(user):
    return create_access_token(
        identity=str(user.id),
        expires_delta=ACCESS_TOKEN_TTL,
        additional_claims={
            "role": user.role.name if user.role else None,
            "school_id": user.school_id,
        }
    )


def _set_access_cookie(response, access_token):
    response.set_cookie(
        "access_token_cookie",
        access_token,
        max_age=int(ACCESS_TOKEN_TTL.total_seconds()),
        httponly=True,
        secure=current_app.config["JWT_COOKIE_SECURE"],
        samesite=current_app.config["JWT_COOKIE_SAMESITE"],
        path="/"
    )


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    role_name = (data.get('role') or '').strip()
    school_id = data.get('school_id')

    if not username or not password or not role_name:
        return jsonify({"error": "Username, password, and role are required"}), 400

    if User.query.filter_by(username=username).first():
        return jsonify({"error": "Username already exists"}), 400

    role = Role.query.filter_by(name=role_name).first()
    if not role:
        return jsonify({"error": f"Role '{role_name}' not found"}), 400

    school = None
    if role_name not in PRIVILEGED_ROLES:
        if not school_id:
            return jsonify({"error": "School is required for this role"}), 400
        school = db.session.get(School, int(school_id))
        if not school:
            return jsonify({"error": f"School '{school_id}' not found"}), 400

    user = User(
        username=username,
        email=data.get('email') or None,
        full_name=data.get('full_name') or None,
        role_id=role.id,
        school_id=school.id if school else None,
    )
    user.set_password(password)

    db.session.add(user)
    db.session.commit()

    log_event("USER_REGISTERED", user_id=user.id, ip=request.remote_addr, description=f"{username} as {role_name}")
    return jsonify({
        "message": "User created",
        "user_id": user.id,
        "school_id": user.school_id,
        "role": role_name
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute", override_defaults=False)
def login():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    ip = request.remote_addr

    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    if not re.match(r'^[\w.@+-]{3,}$', username):
        return jsonify({"error": "Invalid username format"}), 400

    user = User.query.filter_by(username=username).first()

    if user and user.check_password(password):
        access_token = _access_token_for(user)
        refresh_token = create_refresh_token(identity=str(user.id), expires_delta=REFRESH_TOKEN_TTL)

        response = make_response(jsonify({
            "message": "Login successful",
            "access_token": access_token,
            "user": user.to_dict(),
        }))
        _set_access_cookie(response, access_token)
        response.set_cookie(
            "refresh_token_cookie",
            refresh_token,
            max_age=int(REFRESH_TOKEN_TTL.total_seconds()),
            httponly=True,
            secure=current_app.config["JWT_COOKIE_SECURE"],
            samesite=current_app.config["JWT_COOKIE_SAMESITE"],
            path="/auth/refresh"
        )

        log_event("LOGIN_SUCCESS", user_id=user.id, ip=ip, description=f"{username} logged in")
        return response

    log_event("LOGIN_FAILED", ip=ip, description=f"Failed login attempt for {username}", level="WARNING")
    return jsonify({"error": "Invalid username or password"}), 401


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    user = load_current_user()
    if not user:
        return jsonify({"error": "Unauthorized", "message": "User not found"}), 401

    return jsonify(user.to_dict()), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True, locations=["cookies"])
def refresh_access_token():
    user = load_current_user()
    if not user:
        return jsonify({"error": "Unauthorized", "message": "User not found"}), 401

    access_token = _access_token_for(user)
    response = make_response(jsonify({"message": "Token refreshed", "access_token": access_token}))
    _set_access_cookie(response, access_token)

    log_event("REFRESH_TOKEN", user_id=user.id, ip=request.remote_addr)
    return response


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    claims = get_jwt()
    user_id = get_jwt_identity()

    token_block = TokenBlocklist(
        jti=claims["jti"],
        token_type=claims.get("type", "access"),
        user_id=int(user_id),
        expires_at=datetime.fromtimestamp(claims["exp"]),
    )
    db.session.add(token_block)
    db.session.commit()

    response = make_response(jsonify({"message": "Successfully logged out"}))
    response.delete_cookie("access_token_cookie", path="/")
    response.delete_cookie("refresh_token_cookie", path="/auth/refresh")

    log_event("LOGOUT", user_id=user_id, ip=request.remote_addr)
    return response
