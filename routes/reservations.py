from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.room import Room
from services.errors import ValidationError
from services.time_range import TimeRange
from utils.auth_context import login_required
from utils.booking import get_manager
from utils.parsing import parse_datetime, parse_limit

reservations_bp = Blueprint("reservations", __name__, url_prefix="/reservations")


def _with_room(reservation, room=None):
    row = reservation.to_dict()
    room = room or db.session.get(Room, reservation.room_id)
    row["room_name"] = room.name if room else None
    row["location"] = room.location if room else None
    return row


# ---------- create (availability re-checked under the room lock) ----------
@reservations_bp.post("")
@login_required
def create_reservation():
    data = request.get_json(silent=True) or {}

    errors = []
    try:
        room_id = int(data.get("roomId"))
    except (TypeError, ValueError):
        room_id = None
        errors.append({"field": "roomId", "message": "Valid room ID is required"})
    start = end = None
    try:
        start = parse_datetime(data.get("startTime"), "startTime")
    except ValidationError as exc:
        errors.extend(exc.errors)
    try:
        end = parse_datetime(data.get("endTime"), "endTime")
    except ValidationError as exc:
        errors.extend(exc.errors)
    if errors:
        return jsonify(errors=errors), 400

    reservation = get_manager().create(
        user_id=g.user.id,
        room_id=room_id,
        rng=TimeRange(start, end),
        purpose=data.get("purpose"),
        department=data.get("department"),
    )
    return jsonify(message="Reservation created successfully", reservation=_with_room(reservation)), 201


# ---------- own reservations ----------
@reservations_bp.get("/my-reservations")
@login_required
def my_reservations():
    status = request.args.get("status")
    limit = parse_limit(request.args.get("limit"), current_app.config.get("DEFAULT_LIST_LIMIT", 50))

    rows = get_manager().list_for_user(g.user.id, status=status, limit=limit)
    room_ids = {r.room_id for r in rows}
    rooms = {rm.id: rm for rm in Room.query.filter(Room.id.in_(room_ids)).all()} if room_ids else {}
    return jsonify(reservations=[_with_room(r, rooms.get(r.room_id)) for r in rows]), 200


@reservations_bp.get("/<int:reservation_id>")
@login_required
def get_reservation(reservation_id: int):
    reservation = get_manager().get(reservation_id, g.user)
    return jsonify(reservation=_with_room(reservation)), 200


# ---------- update (owner or admin, future only) ----------
@reservations_bp.put("/<int:reservation_id>")
@login_required
def update_reservation(reservation_id: int):
    data = request.get_json(silent=True) or {}

    patch = {}
    if "startTime" in data:
        patch["start_time"] = parse_datetime(data["startTime"], "startTime")
    if "endTime" in data:
        patch["end_time"] = parse_datetime(data["endTime"], "endTime")
    if "purpose" in data:
        patch["purpose"] = data["purpose"]
    if "department" in data:
        patch["department"] = data["department"]

    reservation = get_manager().update(reservation_id, g.user, patch)
    return jsonify(message="Reservation updated successfully", reservation=_with_room(reservation)), 200


# ---------- cancel (owner or admin, future only) ----------
@reservations_bp.delete("/<int:reservation_id>")
@login_required
def cancel_reservation(reservation_id: int):
    reservation = get_manager().cancel(reservation_id, g.user)
    return jsonify(message="Reservation cancelled successfully", reservation=_with_room(reservation)), 200
