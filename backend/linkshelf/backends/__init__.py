"""
LinkShelf Backend — Persistence Backend Selection
===================================================

What:  `build_backend()` chooses and constructs the one BookmarkBackend the
       process will use.
How:   Reads `Settings.use_real_data` once. True builds a SqlBackend over a
       fresh async engine; False builds a seeded MockBackend.
Who:   Called by `create_app()`; the result is stored on `app.state.backend`
       and reaches handlers through the `get_backend` dependency.
When:  Once per application instance. There is no per-call branching and no
       module-level backend object.
"""

import logging
from typing import Optional

from linkshelf.backends.base import DEFAULT_USER_EMAIL, DEFAULT_USER_ID, BookmarkBackend
from linkshelf.backends.mock_backend import MockBackend
from linkshelf.backends.sql_backend import SqlBackend
from linkshelf.config import Settings, settings as default_settings
from linkshelf.database import create_engine

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_USER_EMAIL",
    "DEFAULT_USER_ID",
    "BookmarkBackend",
    "MockBackend",
    "SqlBackend",
    "build_backend",
]


def build_backend(config: Optional[Settings] = None) -> BookmarkBackend:
    """
    Construct the backend selected by configuration.

    Priority (highest first):
        USE_MOCK_DATA=true          → MockBackend
        USE_REAL_DATA=false         → MockBackend
        no / placeholder DATABASE_URL → MockBackend
        otherwise                   → SqlBackend

    Constructing a SqlBackend does not connect; the first query does.
    """
    config = config or default_settings

    if config.use_real_data:
        logger.info("Using relational backend (DATABASE_URL configured)")
        return SqlBackend(create_engine(config=config))

    if config.use_mock_data:
        reason = "USE_MOCK_DATA is set"
    elif config.force_real_data is False:
        reason = "USE_REAL_DATA is false"
    else:
        reason = "no valid DATABASE_URL"
    logger.info("Using mock backend (%s)", reason)
    return MockBackend(seed=config.mock_seed_data)
