"""Database models for foundryhub.

Models are defined using SQLModel (SQLAlchemy + Pydantic).
"""

from foundryhub.core.models.instance import FoundryInstance, generate_ulid, utc_now

__all__ = [
    "FoundryInstance",
    "generate_ulid",
    "utc_now",
]
