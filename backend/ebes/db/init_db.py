from __future__ import annotations
from ebes.db.database import Base, engine
from ebes.models import org, reminder, role, setting, submission, user  # noqa: F401
from ebes.services.seed import seed_defaults_if_empty


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    seed_defaults_if_empty()
