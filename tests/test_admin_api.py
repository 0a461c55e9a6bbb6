from conftest import TOMORROW, at, make_room, make_user
from models import db
from models.reservation import Reservation
from models.room import Room


def book(client, room, start, end, purpose="Sync"):
    resp = client.post("/reservations", json={
        "roomId": room.id, "startTime": start.isoformat(), "endTime": end.isoformat(), "purpose": purpose,
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["reservation"]["id"]


def test_admin_routes_need_admin(alice_client):
    assert alice_client.get("/admin/users").status_code == 403
    assert alice_client.post("/admin/rooms", json={"name": "X", "capacity": 2}).status_code == 403
    assert alice_client.get("/admin/logs").status_code == 403


def test_create_room_with_defaults(admin_client):
    resp = admin_client.post("/admin/rooms", json={"name": "Board Room", "location": "4th Floor", "capacity": 12})
    assert resp.status_code == 201
    room = resp.get_json()["room"]
    assert room["available_from"] == "09:00:00"
    assert room["available_to"] == "17:00:00"
    assert room["is_active"] is True


def test_create_room_validation(admin_client, room):
    resp = admin_client.post("/admin/rooms", json={"name": "", "capacity": 0, "availableFrom": "25:00:00"})
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.get_json()["errors"]}
    assert fields == {"name", "capacity", "availableFrom"}

    dup = admin_client.post("/admin/rooms", json={"name": room.name, "capacity": 4})
    assert dup.status_code == 400
    assert dup.get_json()["error"] == "Room with this name already exists"


def test_update_room_hours(admin_client, room):
    resp = admin_client.put(f"/admin/rooms/{room.id}", json={"availableFrom": "8:00:00", "capacity": 30})
    assert resp.status_code == 200
    assert resp.get_json()["room"]["available_from"] == "08:00:00"
    assert resp.get_json()["room"]["capacity"] == 30

    assert admin_client.put(f"/admin/rooms/{room.id}", json={}).status_code == 400
    assert admin_client.put("/admin/rooms/9999", json={"capacity": 3}).status_code == 404


def test_room_with_future_booking_cannot_be_deactivated_or_deleted(admin_client, alice_client, room):
    book(alice_client, room, at(10), at(11))

    resp = admin_client.put(f"/admin/rooms/{room.id}", json={"isActive": False})
    assert resp.status_code == 400
    assert "future reservations" in resp.get_json()["error"]

    resp = admin_client.delete(f"/admin/rooms/{room.id}")
    assert resp.status_code == 400
    db.session.expire_all()
    assert db.session.get(Room, room.id).is_active is True


def test_room_with_only_cancelled_or_past_bookings_can_go(admin_client, alice_client, room, clock):
    cancelled = book(alice_client, room, at(10), at(11))
    alice_client.delete(f"/reservations/{cancelled}")
    assert admin_client.put(f"/admin/rooms/{room.id}", json={"isActive": False}).status_code == 200
    # deactivating keeps the booking history
    assert Reservation.query.filter_by(room_id=room.id).count() == 1

    other = make_room(name="Meeting Room 1")
    book(alice_client, other, at(9), at(10))
    clock.now = at(12)
    assert admin_client.delete(f"/admin/rooms/{other.id}").status_code == 200

    db.session.expire_all()
    assert db.session.get(Room, other.id) is None
    assert Reservation.query.filter_by(room_id=other.id).count() == 0


def test_inactive_room_cannot_be_booked(admin_client, alice_client, room):
    admin_client.put(f"/admin/rooms/{room.id}", json={"isActive": False})
    resp = alice_client.post("/reservations", json={
        "roomId": room.id, "startTime": at(10).isoformat(), "endTime": at(11).isoformat(), "purpose": "Sync",
    })
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Room not found or inactive"


def test_list_users_and_change_role(admin_client, admin, alice):
    make_user("carol@example.com", name="Carol", department="Finance")

    users = admin_client.get("/admin/users").get_json()["users"]
    assert {u["email"] for u in users} == {"admin@example.com", "alice@example.com", "carol@example.com"}

    finance = admin_client.get("/admin/users?department=Finance").get_json()["users"]
    assert [u["email"] for u in finance] == ["carol@example.com"]

    resp = admin_client.put(f"/admin/users/{alice.id}/role", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "admin"

    admins = admin_client.get("/admin/users?role=admin").get_json()["users"]
    assert {u["email"] for u in admins} == {"admin@example.com", "alice@example.com"}


def test_role_change_guards(admin_client, admin, alice):
    assert admin_client.put(f"/admin/users/{alice.id}/role", json={"role": "owner"}).status_code == 400
    assert admin_client.put("/admin/users/9999/role", json={"role": "user"}).status_code == 404

    resp = admin_client.put(f"/admin/users/{admin.id}/role", json={"role": "user"})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Cannot remove your own admin role"


def test_admin_reservation_listing(admin_client, alice_client, bob_client, room):
    book(alice_client, room, at(9), at(10))
    rid = book(bob_client, room, at(11), at(12))
    bob_client.delete(f"/reservations/{rid}")

    rows = admin_client.get("/admin/reservations").get_json()["reservations"]
    assert len(rows) == 2
    assert rows[0]["user_name"] == "Bob"

    confirmed = admin_client.get("/admin/reservations?status=confirmed").get_json()["reservations"]
    assert [r["user_name"] for r in confirmed] == ["Alice"]


def test_statistics(admin_client, alice_client, room):
    book(alice_client, room, at(9), at(11))
    book(alice_client, room, at(13), at(14))
    rid = book(alice_client, room, at(15), at(16))
    alice_client.delete(f"/reservations/{rid}")

    stats = admin_client.get("/admin/statistics").get_json()["statistics"]
    assert stats["totalReservations"] == 3
    assert stats["confirmedReservations"] == 2
    assert stats["totalRooms"] == 1
    assert stats["roomUtilization"][0]["total_hours"] == 3.0
    assert {p["hour"] for p in stats["peakHours"]} == {9, 13}


def test_room_availability_views(alice_client, bob_client, room):
    book(alice_client, room, at(14), at(15))
    book(bob_client, room, at(9), at(10))

    day = alice_client.get(f"/rooms/{room.id}/availability?date={TOMORROW.isoformat()}").get_json()
    assert [r["user_name"] for r in day["reservations"]] == ["Bob", "Alice"]

    everything = alice_client.get(f"/rooms/availability/all?date={TOMORROW.isoformat()}").get_json()
    assert len(everything["rooms"]) == 1
    assert len(everything["rooms"][0]["reservations"]) == 2

    assert alice_client.get(f"/rooms/{room.id}/availability").status_code == 400


def test_check_availability_lists_conflicts(alice_client, bob_client, room):
    rid = book(alice_client, room, at(10), at(11))
    resp = bob_client.post(f"/rooms/{room.id}/check-availability",
                           json={"startTime": at(10, 30).isoformat(), "endTime": at(11, 30).isoformat()})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["isAvailable"] is False
    assert [r["id"] for r in body["conflictingReservations"]] == [rid]
