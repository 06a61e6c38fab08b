"""Seed Data — demo accounts and rooms written on first access to an empty store.

Invariants:
    - Seeds are returned as fresh lists on every call (callers may mutate them)
    - Room 'r3' is private with credential '123'; every other seeded room is public
"""

from roomcast.core.domain_types import Collection

DEMO_PASSWORD = "password123"

_USERS = [
    ("u1", "Alice Test", "Love coding!"),
    ("u2", "Bob Test", "Python enthusiast"),
    ("u3", "Charlie Test", None),
    ("u4", "Dave Test", None),
    ("u5", "Eve Test", None),
]


def seed_users() -> list[dict]:
    users = []
    for index, (user_id, name, bio) in enumerate(_USERS, start=1):
        user = {
            "id": user_id,
            "name": name,
            "email": f"user{index}@test.com",
            "credential": DEMO_PASSWORD,
            "avatar_ref": f"https://picsum.photos/seed/{user_id}/200",
            "online": False,
        }
        if bio:
            user["bio"] = bio
        users.append(user)
    return users


def seed_rooms() -> list[dict]:
    return [
        {
            "id": "r1", "name": "General Lobby", "is_private": False,
            "owner_id": "system", "description": "Welcome everyone!",
        },
        {
            "id": "r2", "name": "Python Devs", "is_private": False,
            "owner_id": "system", "description": "Talk about FastAPI",
        },
        {
            "id": "r3", "name": "Secret Club", "is_private": True,
            "credential": "123", "owner_id": "u1",
            "description": "Shhh... Password is 123",
        },
    ]


def default_collections(with_demo_data: bool) -> dict[Collection, list[dict]]:
    """Initial contents per collection."""
    if not with_demo_data:
        return {c: [] for c in Collection}
    return {
        Collection.USERS: seed_users(),
        Collection.ROOMS: seed_rooms(),
        Collection.MESSAGES: [],
    }
