from flask import Blueprint, request, jsonify, g

from models import db
from models.user import User, Role
from security.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from security.session import clear_session_cookie, create_session, revoke_current_session, set_session_cookie
from utils.audit import record_event
from utils.auth_context import login_required
from utils.roles import ROLE_USER


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()
    department = (data.get("department") or "").strip() or None

    errors = []
    if len(name) < 2:
        errors.append({"field": "name", "message": "Name must be at least 2 characters long"})
    if not _is_valid_email(email):
        errors.append({"field": "email", "message": "Valid email is required"})
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append({"field": "password", "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"})
    if errors:
        return jsonify(errors=errors), 400

    if User.query.filter_by(email=email).first():
        return jsonify(error="User already exists with this email"), 400

    user = User(email=email, password_hash=hash_password(password), name=name, department=department)
    db.session.add(user)
    db.session.flush()

    user_role = Role.query.filter_by(name=ROLE_USER).first()
    if user_role:
        user.roles.append(user_role)

    db.session.commit()
    record_event("user_registered", actor_id=user.id, entity_type="user", entity_id=user.id)

    return jsonify(message="User registered successfully", user=user.to_dict()), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        record_event("login_failed", actor_id=user.id if user else None, details={"email": email})
        return jsonify(error="Invalid credentials"), 401

    raw_token = create_session(user.id)
    resp = jsonify(message="Login successful", user=user.to_dict())
    set_session_cookie(resp, raw_token)

    record_event("user_login", actor_id=user.id, entity_type="user", entity_id=user.id)
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user=g.user.to_dict()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_current_session()
    record_event("user_logout", actor_id=g.user.id, entity_type="user", entity_id=g.user.id)

    resp = jsonify(message="Logged out")
    clear_session_cookie(resp)
    return resp, 200
