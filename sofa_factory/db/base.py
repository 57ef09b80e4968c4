"""Import every model so ``Base.metadata`` knows about all tables."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from .migrate import run_migrations
from .session import Base

from ..models import customer as _customer  # noqa: F401
from ..models import finished_product as _finished_product  # noqa: F401
from ..models import inventory as _inventory  # noqa: F401
from ..models import notification as _notification  # noqa: F401
from ..models import order as _order  # noqa: F401
from ..models import production as _production  # noqa: F401
from ..models import sale as _sale  # noqa: F401


def init_db(engine: Engine) -> None:
    """Create missing tables, then add any columns older databases lack."""

    Base.metadata.create_all(bind=engine)
    run_migrations(engine, Base.metadata)


__all__ = ["Base", "init_db"]
