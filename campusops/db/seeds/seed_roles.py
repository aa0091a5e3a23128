"""Seed roles and the tile permission matrix into the database."""

import json
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from campusops.services.role_service import role_service

DEFAULT_MATRIX_PATH = Path(__file__).parent / "data" / "rbac_matrix.json"


def load_matrix(path: Optional[Path] = None) -> dict:
    with open(path or DEFAULT_MATRIX_PATH, encoding="utf-8") as fh:
        return json.load(fh)


def seed_roles(db: Session, path: Optional[Path] = None) -> dict:
    """Upsert every role and permission row from the matrix file.

    Safe to re-run: both writes go through the role store's upserts.
    Returns a {role name: role id} map.
    """
    matrix = load_matrix(path)

    role_ids = {}
    for entry in matrix["roles"]:
        role = role_service.upsert_role(
            db, entry["name"], entry["displayName"], entry.get("isAdmin", False)
        )
        role_ids[role.name] = role.id

    rows = 0
    for role_name, perms in matrix.get("permissions", {}).items():
        for perm in perms:
            role_service.set_permission(
                db,
                role_ids[role_name],
                perm["tileKey"],
                perm.get("canAccess", False),
                perm.get("canWrite", False),
            )
            rows += 1

    print(f"Seeded {len(role_ids)} roles and {rows} permission rows")
    return role_ids
