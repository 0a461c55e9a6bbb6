from collections import Counter

from flask import Blueprint, request, jsonify, g

from models import db
from models.reservation import Reservation
from models.room import Room
from services.availability import CANCELLED, CONFIRMED
from services.time_range import TimeRange, duration_hours
from utils.audit import record_event
from utils.auth_context import login_required
from utils.clock import now
from utils.parsing import parse_limit

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.get("/profile")
@login_required
def get_profile():
    return jsonify(user=g.user.to_dict()), 200


@users_bp.put("/profile")
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    department = data.get("department")

    if name is None and department is None:
        return jsonify(error="No fields to update"), 400

    if name is not None:
        if not isinstance(name, str) or len(name.strip()) < 2 or len(name.strip()) > 120:
            return jsonify(errors=[{"field": "name", "message": "Name must be at least 2 characters long"}]), 400
        g.user.name = name.strip()

    if department is not None:
        if not isinstance(department, str) or len(department.strip()) > 100:
            return jsonify(errors=[{"field": "department", "message": "Invalid department"}]), 400
        g.user.department = department.strip() or None

    db.session.commit()
    record_event("profile_updated", actor_id=g.user.id, entity_type="user", entity_id=g.user.id,
                 details={"name": name, "department": department})
    return jsonify(message="Profile updated successfully", user=g.user.to_dict()), 200


def _with_room(rows):
    out = []
    for reservation, room in rows:
        row = reservation.to_dict()
        row.update(room_name=room.name, location=room.location)
        out.append(row)
    return out


def _own_reservations():
    return (
        db.session.query(Reservation, Room)
        .join(Room, Reservation.room_id == Room.id)
        .filter(Reservation.user_id == g.user.id)
    )


@users_bp.get("/upcoming-reservations")
@login_required
def upcoming_reservations():
    limit = parse_limit(request.args.get("limit"), 10)
    rows = (
        _own_reservations()
        .filter(Reservation.status == CONFIRMED, Reservation.start_time > now())
        .order_by(Reservation.start_time.asc())
        .limit(limit)
        .all()
    )
    return jsonify(reservations=_with_room(rows)), 200


@users_bp.get("/past-reservations")
@login_required
def past_reservations():
    limit = parse_limit(request.args.get("limit"), 20)
    rows = (
        _own_reservations()
        .filter(Reservation.end_time < now())
        .order_by(Reservation.start_time.desc())
        .limit(limit)
        .all()
    )
    return jsonify(reservations=_with_room(rows)), 200


@users_bp.get("/statistics")
@login_required
def statistics():
    rows = _own_reservations().all()
    confirmed = [(r, room) for r, room in rows if r.status == CONFIRMED]

    total_hours = sum(duration_hours(TimeRange.of(r)) for r, _ in confirmed)
    usage = Counter(room.name for _, room in confirmed)
    most_used = None
    if usage:
        name, count = usage.most_common(1)[0]
        most_used = {"name": name, "usage_count": count}

    return jsonify(statistics={
        "totalReservations": len(rows),
        "confirmedReservations": len(confirmed),
        "cancelledReservations": sum(1 for r, _ in rows if r.status == CANCELLED),
        "totalHours": total_hours,
        "mostUsedRoom": most_used,
    }), 200
