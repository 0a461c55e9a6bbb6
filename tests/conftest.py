from contextlib import nullcontext
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.room import Room
from models.user import User, Role
from security.password import hash_password
from services.reservations import ReservationManager
from utils.roles import ROLE_ADMIN, ROLE_USER

# Monday morning; tests book "tomorrow" so start times are in the future
NOW = datetime(2026, 10, 19, 8, 0)
TOMORROW = NOW.date() + timedelta(days=1)
PASSWORD = "secret123"


def at(hour, minute=0, day=TOMORROW):
    return datetime(day.year, day.month, day.day, hour, minute)


class FixedClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# ---------- in-memory doubles for the booking core ----------

class FakeReservationStore:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def get(self, reservation_id):
        return self.rows.get(reservation_id)

    def insert(self, fields):
        row = SimpleNamespace(id=self._next_id, cancelled_at=None, **fields)
        self.rows[row.id] = row
        self._next_id += 1
        return row

    def update(self, reservation_id, fields):
        row = self.rows[reservation_id]
        for key, value in fields.items():
            setattr(row, key, value)
        return row

    def set_status(self, reservation_id, status, at=None):
        row = self.rows[reservation_id]
        row.status = status
        row.cancelled_at = at
        return row

    def list_for_user(self, user_id, status=None, limit=50):
        rows = [r for r in self.rows.values() if r.user_id == user_id and (not status or r.status == status)]
        return sorted(rows, key=lambda r: r.start_time, reverse=True)[:limit]


class FakeRoomStore:
    def __init__(self, reservation_store):
        self.rooms = {}
        self.reservation_store = reservation_store
        self.locked = []

    def add(self, room_id, available_from="09:00:00", available_to="17:00:00", is_active=True, name=None):
        room = SimpleNamespace(
            id=room_id,
            name=name or f"Room {room_id}",
            location="1st Floor",
            available_from=available_from,
            available_to=available_to,
            is_active=is_active,
        )
        self.rooms[room_id] = room
        return room

    def get_room(self, room_id):
        return self.rooms.get(room_id)

    def list_reservations_for_room(self, room_id, date_range=None):
        rows = [r for r in self.reservation_store.rows.values() if r.room_id == room_id]
        if date_range is not None:
            rows = [r for r in rows if r.start_time < date_range.end and r.end_time > date_range.start]
        return rows

    def lock_room(self, room_id):
        self.locked.append(room_id)
        return nullcontext()


class FakeUserStore:
    def __init__(self):
        self.users = {}

    def add(self, user_id, is_admin=False):
        user = SimpleNamespace(id=user_id, is_admin=is_admin, name=f"User {user_id}", email=f"u{user_id}@example.com")
        self.users[user_id] = user
        return user

    def get_user(self, user_id):
        return self.users.get(user_id)


class RecordingAudit:
    def __init__(self):
        self.events = []

    def record(self, action, actor_id, entity_type, entity_id, details=None):
        self.events.append((action, actor_id, entity_type, entity_id, details))


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, kind, reservation, user, room):
        self.sent.append((kind, reservation.id, user.id if user else None, room.id if room else None))


class ExplodingSink:
    def record(self, *args, **kwargs):
        raise RuntimeError("audit backend down")

    def notify(self, *args, **kwargs):
        raise RuntimeError("mail server down")


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def reservation_store():
    return FakeReservationStore()


@pytest.fixture
def room_store(reservation_store):
    store = FakeRoomStore(reservation_store)
    store.add(1)
    store.add(2)
    store.add(3, is_active=False)
    return store


@pytest.fixture
def user_store():
    store = FakeUserStore()
    store.add(1)
    store.add(2)
    store.add(99, is_admin=True)
    return store


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def manager(room_store, reservation_store, user_store, audit, notifier, clock):
    return ReservationManager(
        room_store=room_store,
        reservation_store=reservation_store,
        user_store=user_store,
        audit=audit,
        notifier=notifier,
        clock=clock,
    )


# ---------- Flask app ----------

@pytest.fixture
def app(clock):
    app = create_app(TestConfig, now_provider=clock)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email, name="Test User", admin=False, department=None):
    role = Role.query.filter_by(name=ROLE_ADMIN if admin else ROLE_USER).first()
    user = User(email=email, name=name, department=department, password_hash=hash_password(PASSWORD))
    user.roles.append(role)
    db.session.add(user)
    db.session.commit()
    return user


def make_room(name="Conference Room A", capacity=10, available_from="09:00:00", available_to="17:00:00", is_active=True):
    room = Room(name=name, location="1st Floor", capacity=capacity,
                available_from=available_from, available_to=available_to, is_active=is_active)
    db.session.add(room)
    db.session.commit()
    return room


def login(client, email):
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return resp


@pytest.fixture
def alice(app):
    return make_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(app):
    return make_user("bob@example.com", name="Bob")


@pytest.fixture
def admin(app):
    return make_user("admin@example.com", name="Admin", admin=True)


@pytest.fixture
def room(app):
    return make_room()


@pytest.fixture
def alice_client(app, alice):
    c = app.test_client()
    login(c, alice.email)
    return c


@pytest.fixture
def bob_client(app, bob):
    c = app.test_client()
    login(c, bob.email)
    return c


@pytest.fixture
def admin_client(app, admin):
    c = app.test_client()
    login(c, admin.email)
    return c
