"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Track, queue and loop domain logic
- voting/: Skip voting rules
"""

from guild_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
