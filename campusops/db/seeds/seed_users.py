"""Seed demo users, one per role, from the users data file."""

import json
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.security import hash_password
from campusops.models.user import User
from campusops.services.role_service import role_service

DEFAULT_USERS_PATH = Path(__file__).parent / "data" / "demo_users.json"


def seed_users(db: Session, path: Optional[Path] = None) -> None:
    """Create missing demo users; existing accounts are left untouched.

    Role changes of existing users only happen through the audited access
    workflow, never through seeding.
    """
    with open(path or DEFAULT_USERS_PATH, encoding="utf-8") as fh:
        users = json.load(fh)

    created = 0
    for entry in users:
        email = entry["email"].strip().lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue
        role = role_service.get_role_by_name(db, entry["role"])
        db.add(User(
            email=email,
            name=entry["name"],
            hashed_password=hash_password(settings.SEED_USER_PASSWORD),
            role_id=role.id,
            is_active=True,
        ))
        created += 1

    db.commit()
    print(f"Seeded {created} new users ({len(users)} in file)")
