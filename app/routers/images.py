"""Recipe image API router.

Endpoints:
- POST /api/recipes/{id}/images/generate - Generate a dish photo now
- GET /api/recipes/{id}/images - All variants, newest first
- POST /api/images/{image_id}/accept - Make a variant the recipe photo
- POST /api/recipes/{id}/images/uploaded - Register a direct upload
- POST /api/recipes/{id}/images/replace - Replace the recipe photo with an upload
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..ai.image_client import ImageClient
from ..db import get_db
from ..deps import get_current_user, get_recipe_or_404
from ..errors import RecipeBoxError, user_message
from ..models import RecipeImage, User
from ..schemas import (
    GenerateImageRequest, GenerateImageOut, RecipeImageOut, UploadedImageRequest,
    SuccessOut,
)
from ..services import image_generation
from ..storage.s3_compat import get_store, public_url

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("recipebox.images")


def image_to_out(image: RecipeImage) -> RecipeImageOut:
    out = RecipeImageOut.model_validate(image)
    out.image_url = public_url(image.image_key)
    return out


def _http_error(e: RecipeBoxError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=user_message(e))


@router.post("/recipes/{recipe_id}/images/generate", response_model=GenerateImageOut)
@limiter.limit("10/minute")
def generate_image(
    request: Request,  # Required for rate limiter
    recipe_id: str,
    payload: Optional[GenerateImageRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        with ImageClient() as image_client:
            image = image_generation.generate_recipe_image(
                db, user, recipe_id,
                prompt=payload.prompt if payload else None,
                image_client=image_client,
                store=get_store(),
            )
    except RecipeBoxError as e:
        raise _http_error(e)
    return GenerateImageOut(success=True, image_entry_id=image.id)


@router.get("/recipes/{recipe_id}/images", response_model=list[RecipeImageOut])
def list_images(
    recipe_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    recipe = get_recipe_or_404(db, recipe_id)
    return [image_to_out(img) for img in recipe.images]


@router.post("/images/{image_id}/accept", response_model=SuccessOut)
def accept_image(
    image_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        image_generation.accept_recipe_image(db, user, image_id)
    except RecipeBoxError as e:
        raise _http_error(e)
    return SuccessOut()


@router.post("/recipes/{recipe_id}/images/uploaded", response_model=RecipeImageOut, status_code=201)
def register_uploaded_image(
    recipe_id: str,
    payload: UploadedImageRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        image = image_generation.create_uploaded_image(db, user, recipe_id, payload.image_key)
    except RecipeBoxError as e:
        raise _http_error(e)
    return image_to_out(image)


@router.post("/recipes/{recipe_id}/images/replace", response_model=RecipeImageOut, status_code=201)
def replace_image(
    recipe_id: str,
    payload: UploadedImageRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Upload replaces whatever photo the recipe had, including its prompt."""
    try:
        image = image_generation.create_uploaded_image(
            db, user, recipe_id, payload.image_key, replace_prompt=True
        )
    except RecipeBoxError as e:
        raise _http_error(e)
    logger.info(f"Replaced image for recipe {recipe_id}")
    return image_to_out(image)
