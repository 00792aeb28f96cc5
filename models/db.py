import uuid
from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def new_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def atomic():
    """Commit everything done inside the block, or nothing."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
