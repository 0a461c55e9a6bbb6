from collections import Counter

from flask import Blueprint, jsonify, g, request, current_app
from sqlalchemy.exc import IntegrityError

from security.rbac import require_roles
from services.errors import PermissionDeniedError, RoomInUseError, ValidationError
from utils.audit import record_event
from utils.booking import get_directory
from utils.parsing import parse_limit, parse_optional_datetime, parse_time_of_day
from utils.roles import ROLE_ADMIN, stored_role_name
from models import db
from models.user import User, Role
from models.room import Room
from models.reservation import Reservation

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- users ----------
@admin_bp.get("/users")
@require_roles(ROLE_ADMIN)
def list_users():
    role_filter = stored_role_name(request.args.get("role") or "")
    department = (request.args.get("department") or "").strip()
    limit = parse_limit(request.args.get("limit"), current_app.config.get("DEFAULT_LIST_LIMIT", 50))

    q = User.query
    if role_filter == ROLE_ADMIN:
        q = q.filter(User.roles.any(Role.name == ROLE_ADMIN))
    elif role_filter:
        q = q.filter(~User.roles.any(Role.name == ROLE_ADMIN))
    if department:
        q = q.filter(User.department == department)

    users = q.order_by(User.created_at.desc()).limit(limit).all()
    return jsonify(users=[u.to_dict() for u in users]), 200


@admin_bp.put("/users/<int:user_id>/role")
@require_roles(ROLE_ADMIN)
def update_user_role(user_id: int):
    data = request.get_json(silent=True) or {}
    role_name = stored_role_name(data.get("role"))
    if role_name is None:
        raise ValidationError.for_field("role", "Role must be either user or admin")

    user = db.session.get(User, user_id)
    if not user:
        return jsonify(error="User not found"), 404

    if role_name != ROLE_ADMIN and user.is_admin:
        if user.id == g.user.id:
            raise PermissionDeniedError("Cannot remove your own admin role")
        admin_count = User.query.filter(User.roles.any(Role.name == ROLE_ADMIN)).count()
        if admin_count <= 1:
            raise PermissionDeniedError("Cannot remove the last admin")

    role = Role.query.filter_by(name=role_name).first()
    if role is None:
        role = Role(name=role_name)
        db.session.add(role)
    user.roles = [role]
    db.session.commit()

    record_event("user_role_updated", actor_id=g.user.id, entity_type="user", entity_id=user.id,
                 details={"newRole": user.role})
    return jsonify(message="User role updated successfully", user=user.to_dict()), 200


# ---------- reservations ----------
@admin_bp.get("/reservations")
@require_roles(ROLE_ADMIN)
def list_reservations():
    status = request.args.get("status")
    room_id = request.args.get("roomId", type=int)
    user_id = request.args.get("userId", type=int)
    start_date = parse_optional_datetime(request.args.get("startDate"), "startDate")
    end_date = parse_optional_datetime(request.args.get("endDate"), "endDate")
    limit = parse_limit(request.args.get("limit"), current_app.config.get("DEFAULT_LIST_LIMIT", 50))

    q = (
        db.session.query(Reservation, Room, User)
        .join(Room, Reservation.room_id == Room.id)
        .join(User, Reservation.user_id == User.id)
    )
    if status:
        q = q.filter(Reservation.status == status)
    if room_id:
        q = q.filter(Reservation.room_id == room_id)
    if user_id:
        q = q.filter(Reservation.user_id == user_id)
    if start_date:
        q = q.filter(Reservation.start_time >= start_date)
    if end_date:
        q = q.filter(Reservation.end_time <= end_date)

    out = []
    for reservation, room, user in q.order_by(Reservation.start_time.desc()).limit(limit).all():
        row = reservation.to_dict()
        row.update(room_name=room.name, location=room.location, user_name=user.name, user_email=user.email)
        out.append(row)
    return jsonify(reservations=out), 200


# ---------- rooms ----------
def _room_fields(data, partial: bool):
    fields = {}
    errors = []

    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append({"field": "name", "message": "Room name is required"})
        else:
            fields["name"] = name.strip()

    if "location" in data:
        location = data.get("location")
        fields["location"] = (location.strip() or None) if isinstance(location, str) else None

    if "description" in data:
        description = data.get("description")
        fields["description"] = (description.strip() or None) if isinstance(description, str) else None

    if "capacity" in data or not partial:
        capacity = data.get("capacity")
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            errors.append({"field": "capacity", "message": "Capacity must be a positive integer"})
        else:
            fields["capacity"] = capacity

    defaults = {
        "availableFrom": current_app.config.get("DEFAULT_AVAILABLE_FROM", "09:00:00"),
        "availableTo": current_app.config.get("DEFAULT_AVAILABLE_TO", "17:00:00"),
    }
    for key, column in (("availableFrom", "available_from"), ("availableTo", "available_to")):
        if key in data:
            try:
                fields[column] = parse_time_of_day(data.get(key), key)
            except ValidationError as exc:
                errors.extend(exc.errors)
        elif not partial:
            fields[column] = defaults[key]

    if "isActive" in data:
        if not isinstance(data.get("isActive"), bool):
            errors.append({"field": "isActive", "message": "isActive must be a boolean"})
        else:
            fields["is_active"] = data["isActive"]

    if errors:
        raise ValidationError(errors=errors)
    return fields


def _name_taken(name, exclude_id=None):
    q = Room.query.filter(Room.name == name)
    if exclude_id is not None:
        q = q.filter(Room.id != exclude_id)
    return q.first() is not None


@admin_bp.post("/rooms")
@require_roles(ROLE_ADMIN)
def create_room():
    fields = _room_fields(request.get_json(silent=True) or {}, partial=False)
    if _name_taken(fields["name"]):
        return jsonify(error="Room with this name already exists"), 400

    room = Room(**fields)
    db.session.add(room)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Room with this name already exists"), 400

    record_event("room_created", actor_id=g.user.id, entity_type="room", entity_id=room.id,
                 details={"name": room.name, "location": room.location, "capacity": room.capacity})
    return jsonify(message="Room created successfully", room=room.to_dict()), 201


@admin_bp.put("/rooms/<int:room_id>")
@require_roles(ROLE_ADMIN)
def update_room(room_id: int):
    directory = get_directory()
    room = directory.get_room(room_id)

    fields = _room_fields(request.get_json(silent=True) or {}, partial=True)
    if not fields:
        return jsonify(error="No fields to update"), 400
    if "name" in fields and _name_taken(fields["name"], exclude_id=room.id):
        return jsonify(error="Room with this name already exists"), 400

    if fields.get("is_active") is False and room.is_active and not directory.can_deactivate_or_delete(room):
        raise RoomInUseError("Cannot deactivate room with active future reservations")

    for key, value in fields.items():
        setattr(room, key, value)
    db.session.commit()

    record_event("room_updated", actor_id=g.user.id, entity_type="room", entity_id=room.id,
                 details=fields)
    return jsonify(message="Room updated successfully", room=room.to_dict()), 200


@admin_bp.delete("/rooms/<int:room_id>")
@require_roles(ROLE_ADMIN)
def delete_room(room_id: int):
    directory = get_directory()
    room = directory.get_room(room_id)

    if not directory.can_deactivate_or_delete(room):
        raise RoomInUseError("Cannot delete room with active future reservations")

    # past and cancelled bookings go with the room
    removed = Reservation.query.filter(Reservation.room_id == room.id).delete()
    name = room.name
    db.session.delete(room)
    db.session.commit()

    record_event("room_deleted", actor_id=g.user.id, entity_type="room", entity_id=room_id,
                 details={"roomName": name, "removedReservations": removed})
    return jsonify(message="Room deleted successfully"), 200


# ---------- statistics ----------
@admin_bp.get("/statistics")
@require_roles(ROLE_ADMIN)
def statistics():
    start_date = parse_optional_datetime(request.args.get("startDate"), "startDate")
    end_date = parse_optional_datetime(request.args.get("endDate"), "endDate")

    q = Reservation.query
    if start_date and end_date:
        q = q.filter(Reservation.start_time >= start_date, Reservation.start_time <= end_date)
    reservations = q.all()
    confirmed = [r for r in reservations if r.status == "confirmed"]

    active_rooms = Room.query.filter(Room.is_active.is_(True)).all()
    per_room = {room.id: {"name": room.name, "reservation_count": 0, "total_hours": 0.0} for room in active_rooms}
    for r in confirmed:
        if r.room_id in per_room:
            per_room[r.room_id]["reservation_count"] += 1
            per_room[r.room_id]["total_hours"] += (r.end_time - r.start_time).total_seconds() / 3600
    utilization = sorted(per_room.values(), key=lambda row: row["total_hours"], reverse=True)

    hours = Counter(r.start_time.hour for r in confirmed)
    peak_hours = [{"hour": hour, "reservation_count": count} for hour, count in hours.most_common(5)]

    return jsonify(statistics={
        "totalReservations": len(reservations),
        "confirmedReservations": len(confirmed),
        "totalUsers": User.query.count(),
        "totalRooms": len(active_rooms),
        "roomUtilization": utilization,
        "peakHours": peak_hours,
    }), 200
