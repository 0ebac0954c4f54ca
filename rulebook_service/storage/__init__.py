"""Storage domain - database, records, repositories and unit of work."""

# Database
from rulebook_service.storage.database import (
    get_database_url,
    get_db_path,
    set_db_path,
    get_engine,
    reset_engine,
    init_db,
    reset_db,
    get_table_stats,
)

# Records
from rulebook_service.storage.models import RuleRecord, RulebookRecord, now_iso

# Repositories
from rulebook_service.storage.repositories import RuleRepository, RulebookRepository

# Transactions
from rulebook_service.storage.unit_of_work import run_in_transaction

__all__ = [
    # Database
    "get_database_url",
    "get_db_path",
    "set_db_path",
    "get_engine",
    "reset_engine",
    "init_db",
    "reset_db",
    "get_table_stats",
    # Records
    "RuleRecord",
    "RulebookRecord",
    "now_iso",
    # Repositories
    "RuleRepository",
    "RulebookRepository",
    # Transactions
    "run_in_transaction",
]
