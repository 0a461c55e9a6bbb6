from models import db
from models.room import Room
from models.user import Role
from utils.roles import ROLE_ADMIN, ROLE_USER

DEFAULT_ROLES = [ROLE_USER, ROLE_ADMIN]

SAMPLE_ROOMS = [
    {"name": "Conference Room A", "location": "1st Floor", "capacity": 20},
    {"name": "Conference Room B", "location": "2nd Floor", "capacity": 15},
    {"name": "Meeting Room 1", "location": "3rd Floor", "capacity": 8},
    {"name": "Meeting Room 2", "location": "3rd Floor", "capacity": 6},
    {"name": "Board Room", "location": "4th Floor", "capacity": 12},
]

def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()

def seed_rooms(default_from="09:00:00", default_to="17:00:00"):
    existing = {r.name for r in Room.query.all()}
    created = 0
    for fields in SAMPLE_ROOMS:
        if fields["name"] in existing:
            continue
        db.session.add(Room(available_from=default_from, available_to=default_to, **fields))
        created += 1
    db.session.commit()
    return created
