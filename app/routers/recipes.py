"""Recipes CRUD API router.

Endpoints:
- GET /api/recipes - List recipes, newest first
- POST /api/recipes - Create recipe
- GET /api/recipes/{id} - Get recipe
- PATCH /api/recipes/{id} - Partial update
- DELETE /api/recipes/{id} - Delete recipe with its history, schedule and images
- POST /api/uploads/url - Presigned URL for a direct image upload
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..db import get_db
from ..deps import get_current_user, get_recipe_or_404
from ..models import Recipe, User
from ..schemas import RecipeCreate, RecipeOut, RecipePatch, UploadUrlOut
from ..settings import settings
from ..storage.s3_compat import get_store, public_url

router = APIRouter()
logger = logging.getLogger("recipebox.recipes")


def recipe_to_out(recipe: Optional[Recipe]) -> Optional[RecipeOut]:
    """Convert Recipe model to RecipeOut with its public image URL."""
    if recipe is None:
        return None
    out = RecipeOut.model_validate(recipe)
    out.image_url = public_url(recipe.image_key)
    return out


@router.get("/recipes", response_model=list[RecipeOut])
def list_recipes(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    search: Optional[str] = Query(None),
):
    """List all family recipes."""
    query = db.query(Recipe)
    if search:
        query = query.filter(Recipe.name.ilike(f"%{search}%"))

    recipes = query.order_by(Recipe.created_at.desc()).all()
    return [recipe_to_out(r) for r in recipes]


@router.post("/recipes", response_model=RecipeOut, status_code=201)
def create_recipe(
    payload: RecipeCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    now = utcnow()
    recipe = Recipe(
        name=payload.name.strip(),
        description=payload.description,
        rating=payload.rating,
        image_key=payload.image_key,
        image_source="upload" if payload.image_key else None,
        image_prompt=payload.image_prompt,
        created_at=now,
        updated_at=now,
        created_by=user.id,
    )
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info(f"Created recipe {recipe.id} '{recipe.name}'")
    return recipe_to_out(recipe)


@router.get("/recipes/{recipe_id}", response_model=RecipeOut)
def get_recipe(
    recipe_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return recipe_to_out(get_recipe_or_404(db, recipe_id))


@router.patch("/recipes/{recipe_id}", response_model=RecipeOut)
def update_recipe(
    recipe_id: str,
    payload: RecipePatch,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Update only the fields present in the request body."""
    recipe = get_recipe_or_404(db, recipe_id)

    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] is None:
        raise HTTPException(status_code=422, detail="name cannot be null")
    for field, value in updates.items():
        setattr(recipe, field, value)
    if "image_key" in updates and updates["image_key"]:
        recipe.image_source = "upload"
    recipe.updated_at = utcnow()

    db.commit()
    db.refresh(recipe)
    return recipe_to_out(recipe)


@router.delete("/recipes/{recipe_id}", status_code=204)
def delete_recipe(
    recipe_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete a recipe and all its associated data (including image blobs)."""
    recipe = get_recipe_or_404(db, recipe_id)

    # Collect blob keys before the rows go away
    keys = {img.image_key for img in recipe.images if img.image_key}
    if recipe.image_key:
        keys.add(recipe.image_key)

    # cascade="all, delete-orphan" removes history, scheduled meals and images
    db.delete(recipe)
    db.commit()
    logger.info(f"Deleted recipe {recipe_id} ({len(keys)} blobs)")

    # Blob cleanup is best effort, after the DB commit
    store = get_store()
    for key in keys:
        if key.startswith("http"):
            continue
        if not store.delete(key):
            logger.warning(f"Orphaned blob {key} for recipe {recipe_id}")

    return None


@router.post("/uploads/url", response_model=UploadUrlOut)
def create_upload_url(
    content_type: str = Query("image/webp"),
    user: User = Depends(get_current_user),
):
    """Presigned PUT URL so the browser uploads straight to the bucket."""
    store = get_store()
    key = store.new_key(content_type)
    url = store.presigned_upload_url(key, expires_in=settings.upload_url_expires_sec)
    return UploadUrlOut(upload_url=url, image_key=key)
