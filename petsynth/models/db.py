# petsynth/models/db.py
import uuid

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id() -> str:
    """Opaque unique identifier for every table's primary key."""
    return str(uuid.uuid4())
