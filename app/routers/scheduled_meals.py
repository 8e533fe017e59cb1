"""Meal planner router.

Endpoints:
- GET /api/scheduled-meals - Upcoming meals (optionally including completed)
- GET /api/scheduled-meals/range - Meals within [start, end]
- POST /api/scheduled-meals - Schedule a recipe
- POST /api/scheduled-meals/{id}/complete - Mark cooked, optionally log history
- PATCH /api/scheduled-meals/{id}
- DELETE /api/scheduled-meals/{id}
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from ..core.clock import as_utc
from ..db import get_db
from ..deps import get_current_user, get_recipe_or_404
from ..models import ScheduledMeal, User
from ..schemas import (
    ScheduledMealCreate, ScheduledMealPatch, ScheduledMealOut, CompleteMealRequest,
    SuccessOut,
)
from ..services.history import record_cooking
from .recipes import recipe_to_out

router = APIRouter()
logger = logging.getLogger("recipebox.planner")


def _meal_to_out(meal: ScheduledMeal) -> ScheduledMealOut:
    out = ScheduledMealOut.model_validate(meal)
    out.recipe = recipe_to_out(meal.recipe)
    return out


def _get_meal_or_404(db: Session, meal_id: str) -> ScheduledMeal:
    meal = db.get(ScheduledMeal, meal_id)
    if not meal:
        raise HTTPException(status_code=404, detail="Scheduled meal not found")
    return meal


@router.get("/scheduled-meals", response_model=list[ScheduledMealOut])
def list_scheduled_meals(
    include_completed: bool = Query(False),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(ScheduledMeal).options(joinedload(ScheduledMeal.recipe))
    if not include_completed:
        query = query.filter(ScheduledMeal.completed.is_(False))
    meals = query.order_by(ScheduledMeal.scheduled_for.asc()).all()
    return [_meal_to_out(m) for m in meals]


@router.get("/scheduled-meals/range", response_model=list[ScheduledMealOut])
def list_scheduled_meals_in_range(
    start: datetime,
    end: datetime,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Meals with start <= scheduled_for <= end, completed or not."""
    start, end = as_utc(start), as_utc(end)
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")

    meals = (
        db.query(ScheduledMeal)
        .options(joinedload(ScheduledMeal.recipe))
        .filter(ScheduledMeal.scheduled_for >= start, ScheduledMeal.scheduled_for <= end)
        .order_by(ScheduledMeal.scheduled_for.asc())
        .all()
    )
    return [_meal_to_out(m) for m in meals]


@router.post("/scheduled-meals", response_model=ScheduledMealOut, status_code=201)
def schedule_meal(
    payload: ScheduledMealCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    recipe = get_recipe_or_404(db, payload.recipe_id)
    meal = ScheduledMeal(
        recipe_id=recipe.id,
        scheduled_for=as_utc(payload.scheduled_for),
        notes=payload.notes,
        completed=False,
        created_by=user.id,
    )
    db.add(meal)
    db.commit()
    db.refresh(meal)
    logger.info(f"Scheduled recipe {recipe.id} for {meal.scheduled_for}")
    return _meal_to_out(meal)


@router.post("/scheduled-meals/{meal_id}/complete", response_model=SuccessOut)
def complete_meal(
    meal_id: str,
    payload: CompleteMealRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mark a meal as cooked. With add_to_history, logs exactly one history entry."""
    meal = _get_meal_or_404(db, meal_id)

    if meal.completed:
        return SuccessOut()

    meal.completed = True
    if payload.add_to_history:
        record_cooking(
            db, meal.recipe, user,
            notes=payload.history_notes,
            rating=payload.history_rating,
        )
    db.commit()
    return SuccessOut()


@router.patch("/scheduled-meals/{meal_id}", response_model=ScheduledMealOut)
def update_scheduled_meal(
    meal_id: str,
    payload: ScheduledMealPatch,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    meal = _get_meal_or_404(db, meal_id)
    updates = payload.model_dump(exclude_unset=True)
    if "scheduled_for" in updates:
        if updates["scheduled_for"] is None:
            raise HTTPException(status_code=422, detail="scheduled_for cannot be null")
        meal.scheduled_for = as_utc(updates["scheduled_for"])
    if "notes" in updates:
        meal.notes = updates["notes"]
    db.commit()
    db.refresh(meal)
    return _meal_to_out(meal)


@router.delete("/scheduled-meals/{meal_id}", status_code=204)
def delete_scheduled_meal(
    meal_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    meal = _get_meal_or_404(db, meal_id)
    db.delete(meal)
    db.commit()
    return None
