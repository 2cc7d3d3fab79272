"""
Database layer: analysis history and share tokens (SQLAlchemy; Postgres or SQLite).
"""

from guardaio.database.history import (
    AnalysisRecord,
    HistoryStore,
    get_history_store,
    reset_history_store_for_test,
)

__all__ = [
    "AnalysisRecord",
    "HistoryStore",
    "get_history_store",
    "reset_history_store_for_test",
]
