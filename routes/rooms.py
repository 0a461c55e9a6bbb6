from flask import Blueprint, request, jsonify

from models import db
from models.room import Room
from models.user import User
from services.time_range import TimeRange
from utils.auth_context import login_required
from utils.booking import get_directory, get_manager
from utils.parsing import parse_date, parse_datetime

rooms_bp = Blueprint("rooms", __name__, url_prefix="/rooms")


def _schedule_payload(reservations):
    user_ids = {r.user_id for r in reservations}
    users = {u.id: u for u in User.query.filter(User.id.in_(user_ids)).all()} if user_ids else {}
    out = []
    for r in reservations:
        row = r.to_dict()
        owner = users.get(r.user_id)
        row["user_name"] = owner.name if owner else None
        out.append(row)
    return out


@rooms_bp.get("")
@login_required
def list_rooms():
    active = request.args.get("active")
    q = Room.query
    if active == "true":
        q = q.filter(Room.is_active.is_(True))
    elif active == "false":
        q = q.filter(Room.is_active.is_(False))

    rooms = q.order_by(Room.name.asc()).all()
    return jsonify(rooms=[r.to_dict() for r in rooms]), 200


@rooms_bp.get("/<int:room_id>")
@login_required
def get_room(room_id: int):
    room = get_directory().get_room(room_id)
    return jsonify(room=room.to_dict()), 200


@rooms_bp.get("/<int:room_id>/availability")
@login_required
def room_availability(room_id: int):
    day = parse_date(request.args.get("date"))
    directory = get_directory()
    room = directory.get_room(room_id)
    reservations = directory.daily_schedule(room, day)
    return jsonify(
        room=room.to_dict(),
        date=day.isoformat(),
        reservations=_schedule_payload(reservations),
    ), 200


@rooms_bp.get("/availability/all")
@login_required
def all_rooms_availability():
    day = parse_date(request.args.get("date"))
    directory = get_directory()

    rooms = Room.query.filter(Room.is_active.is_(True)).order_by(Room.name.asc()).all()
    out = []
    for room in rooms:
        row = room.to_dict()
        row["reservations"] = _schedule_payload(directory.daily_schedule(room, day))
        out.append(row)
    return jsonify(date=day.isoformat(), rooms=out), 200


# advisory only: POST /reservations repeats this check before writing
@rooms_bp.post("/<int:room_id>/check-availability")
@login_required
def check_availability(room_id: int):
    data = request.get_json(silent=True) or {}
    start = parse_datetime(data.get("startTime"), "startTime")
    end = parse_datetime(data.get("endTime"), "endTime")
    rng = TimeRange(start, end)

    result = get_manager().check(room_id, rng)
    room = db.session.get(Room, room_id)
    return jsonify(
        room=room.to_dict(),
        startTime=start.isoformat(),
        endTime=end.isoformat(),
        isAvailable=result.available,
        conflictingReservations=[r.to_dict() for r in result.conflicts],
    ), 200
