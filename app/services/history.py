from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import as_utc, utcnow
from ..models import CookingHistory, Recipe, User


def record_cooking(
    db: Session,
    recipe: Recipe,
    user: User,
    cooked_at: Optional[datetime] = None,
    notes: Optional[str] = None,
    rating: Optional[int] = None,
) -> CookingHistory:
    """Add a history row and move the recipe's last_cooked_at forward. Caller commits."""
    cooked_at = as_utc(cooked_at) or utcnow()
    entry = CookingHistory(
        recipe_id=recipe.id,
        cooked_at=cooked_at,
        notes=notes,
        rating=rating,
        cooked_by=user.id,
    )
    db.add(entry)
    advance_last_cooked(recipe, cooked_at)
    return entry


def advance_last_cooked(recipe: Recipe, cooked_at: datetime) -> None:
    """last_cooked_at only ever moves forward."""
    last = as_utc(recipe.last_cooked_at)
    if last is None or cooked_at > last:
        recipe.last_cooked_at = cooked_at
