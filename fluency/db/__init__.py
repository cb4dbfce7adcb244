from fluency.db.database import (
    async_session_scope,
    configure_engine,
    dispose_engine,
    get_async_engine,
    get_session_factory,
    init_db,
)

__all__ = [
    "async_session_scope",
    "configure_engine",
    "dispose_engine",
    "get_async_engine",
    "get_session_factory",
    "init_db",
]
