"""Cooking history router.

Endpoints:
- GET /api/recipes/{id}/history - Entries for one recipe, newest first
- GET /api/history/recent - Latest entries across recipes
- POST /api/history - Log a cooking
- PATCH /api/history/{id}
- DELETE /api/history/{id}
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from ..core.clock import as_utc
from ..db import get_db
from ..deps import get_current_user, get_recipe_or_404
from ..models import CookingHistory, User
from ..schemas import HistoryCreate, HistoryOut, HistoryPatch, HistoryWithRecipeOut
from ..services.history import advance_last_cooked, record_cooking
from .recipes import recipe_to_out

router = APIRouter()
logger = logging.getLogger("recipebox.history")


def _get_entry_or_404(db: Session, entry_id: str) -> CookingHistory:
    entry = db.get(CookingHistory, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    return entry


@router.get("/recipes/{recipe_id}/history", response_model=list[HistoryOut])
def list_recipe_history(
    recipe_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return (
        db.query(CookingHistory)
        .filter(CookingHistory.recipe_id == recipe_id)
        .order_by(CookingHistory.cooked_at.desc())
        .all()
    )


@router.get("/history/recent", response_model=list[HistoryWithRecipeOut])
def list_recent_history(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entries = (
        db.query(CookingHistory)
        .options(joinedload(CookingHistory.recipe))
        .order_by(CookingHistory.cooked_at.desc())
        .limit(limit)
        .all()
    )
    results = []
    for entry in entries:
        out = HistoryWithRecipeOut.model_validate(entry)
        out.recipe = recipe_to_out(entry.recipe)
        results.append(out)
    return results


@router.post("/history", response_model=HistoryOut, status_code=201)
def add_history(
    payload: HistoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    recipe = get_recipe_or_404(db, payload.recipe_id)
    entry = record_cooking(
        db, recipe, user,
        cooked_at=payload.cooked_at,
        notes=payload.notes,
        rating=payload.rating,
    )
    db.commit()
    db.refresh(entry)
    logger.info(f"Logged cooking of recipe {recipe.id}")
    return entry


@router.patch("/history/{entry_id}", response_model=HistoryOut)
def update_history(
    entry_id: str,
    payload: HistoryPatch,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = _get_entry_or_404(db, entry_id)
    updates = payload.model_dump(exclude_unset=True)
    if "cooked_at" in updates:
        if updates["cooked_at"] is None:
            raise HTTPException(status_code=422, detail="cooked_at cannot be null")
        entry.cooked_at = as_utc(updates.pop("cooked_at"))
        advance_last_cooked(entry.recipe, entry.cooked_at)
    for field, value in updates.items():
        setattr(entry, field, value)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/history/{entry_id}", status_code=204)
def delete_history(
    entry_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = _get_entry_or_404(db, entry_id)
    db.delete(entry)
    db.commit()
    return None
