"""Contributor `EntitySpec`."""

from catalog.models import User
from catalog.query import EntitySpec, FieldRegistry

USERS: EntitySpec[User] = EntitySpec(
    model=User,
    fields=FieldRegistry.for_model(
        User,
        filterable=("id", "user_tier", "quality_score", "total_submissions"),
        sortable=("id", "quality_score", "total_submissions", "total_earnings", "created_at"),
    ),
)
