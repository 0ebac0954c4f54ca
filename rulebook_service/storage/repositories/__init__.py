"""
Repositories package for storage domain.

Provides database access operations for rules and rulebooks.
"""

from rulebook_service.storage.repositories.rule_repo import RuleRepository
from rulebook_service.storage.repositories.rulebook_repo import RulebookRepository

__all__ = [
    "RuleRepository",
    "RulebookRepository",
]
