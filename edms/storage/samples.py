"""Sample users and projects for development environments."""

from __future__ import annotations

import logging
from datetime import timedelta

from .base import StorageBackend, utcnow

logger = logging.getLogger(__name__)

ADMIN_USER = {
    "username": "admin",
    "password": "admin123",
    "full_name": "System Administrator",
    "role": "admin",
}


def sample_projects() -> list[dict]:
    now = utcnow()
    return [
        {
            "name": "Grand Residence Apartment Development",
            "description": "Construction of a luxury apartment tower in South Jakarta",
            "location": "South Jakarta",
            "status": "active",
            "image": "https://images.unsplash.com/photo-1503387762-592deb58ef4e?auto=format&fit=crop&w=200&h=200",
            "start_date": now,
            "end_date": now + timedelta(days=365),
        },
        {
            "name": "Suramadu Bridge Extension",
            "description": "Extension works on the Suramadu bridge",
            "location": "Surabaya",
            "status": "active",
            "image": "https://images.unsplash.com/photo-1541888946425-d81bb19240f5?auto=format&fit=crop&w=200&h=200",
            "start_date": now,
            "end_date": now + timedelta(days=182),
        },
        {
            "name": "Bandung Tech Park",
            "description": "Construction of a technology park in Bandung",
            "location": "Bandung",
            "status": "pending",
            "image": None,
            "start_date": now,
            "end_date": None,
        },
    ]


def seed_sample_data(storage: StorageBackend) -> bool:
    """Insert the admin user and sample projects unless the admin already exists."""
    if storage.get_user_by_username(ADMIN_USER["username"]) is not None:
        logger.info("seed_skipped reason=admin_exists backend=%s", storage.name)
        return False

    admin = storage.create_user(ADMIN_USER)
    projects = [storage.create_project(payload) for payload in sample_projects()]
    logger.info(
        "seed_complete backend=%s admin_id=%s projects=%s",
        storage.name,
        admin.id,
        len(projects),
    )
    return True
