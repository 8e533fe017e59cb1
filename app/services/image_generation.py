"""Recipe image workflow.

generate_recipe_image runs the whole chain inside one request:

1. permission flag and daily quota checks
2. counter incremented and committed before any external call
3. recipe -> "generating", new RecipeImage row (status "generating")
4. provider call -> blob upload
5. image -> "completed"; first image of a recipe is auto-accepted

Any failure after step 3 flips both rows to "failed" and re-raises a domain
error whose message is safe to show. There is no retry: the family simply
presses the button again.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..ai.image_client import ImageClient
from ..core.clock import utc_date_key, utcnow
from ..errors import (
    DailyLimitReached,
    GenerationDisabled,
    ImageNotFound,
    ImageNotReady,
    NotAuthenticated,
    NotAuthorized,
    RecipeBoxError,
    RecipeNotFound,
    UploadFailed,
)
from ..models import ImageGenerationLimit, Recipe, RecipeImage, User
from ..settings import settings
from ..storage.s3_compat import S3CompatStore, get_store

logger = logging.getLogger("recipebox.images")

UPLOADED_PROMPT = "Uploaded image"


# --- Daily counter ---

def _counter(db: Session, date_key: str) -> Optional[ImageGenerationLimit]:
    return db.query(ImageGenerationLimit).filter(ImageGenerationLimit.date == date_key).first()


def get_daily_count(db: Session, date_key: str) -> int:
    record = _counter(db, date_key)
    return record.count if record else 0


def increment_daily_count(db: Session, date_key: str) -> int:
    """Atomically add one to the day's counter, creating the row on first use."""
    if _counter(db, date_key) is None:
        db.add(ImageGenerationLimit(date=date_key, count=0))
        try:
            db.commit()
        except IntegrityError:
            # Another request created today's row first
            db.rollback()

    db.query(ImageGenerationLimit).filter(ImageGenerationLimit.date == date_key).update(
        {ImageGenerationLimit.count: ImageGenerationLimit.count + 1},
        synchronize_session=False,
    )
    db.commit()
    return _counter(db, date_key).count


# --- Acceptance ---

def has_accepted_image(db: Session, recipe_id: str) -> bool:
    return (
        db.query(RecipeImage)
        .filter(RecipeImage.recipe_id == recipe_id, RecipeImage.is_accepted.is_(True))
        .first()
        is not None
    )


def set_accepted_image(
    db: Session,
    recipe: Recipe,
    image: RecipeImage,
    image_prompt: Optional[str] = None,
) -> None:
    """Make ``image`` the recipe's display photo.

    Unsets every accepted image of the recipe first, then accepts this one and
    copies its key onto the recipe, all in a single commit.
    """
    accepted = (
        db.query(RecipeImage)
        .filter(
            RecipeImage.recipe_id == recipe.id,
            RecipeImage.is_accepted.is_(True),
            RecipeImage.id != image.id,
        )
        .all()
    )
    for other in accepted:
        other.is_accepted = False

    image.is_accepted = True
    recipe.image_key = image.image_key
    recipe.image_generation_status = "completed"
    recipe.image_source = image.source
    if image_prompt is not None:
        recipe.image_prompt = image_prompt
    recipe.updated_at = utcnow()
    db.commit()


# --- Generation ---

def _mark_failed(db: Session, recipe: Recipe, image: RecipeImage) -> None:
    db.rollback()
    image.status = "failed"
    recipe.image_generation_status = "failed"
    recipe.updated_at = utcnow()
    db.commit()


def generate_recipe_image(
    db: Session,
    user: Optional[User],
    recipe_id: str,
    prompt: Optional[str] = None,
    *,
    image_client: ImageClient,
    store: Optional[S3CompatStore] = None,
) -> RecipeImage:
    """Caller owns image_client and closes it."""
    if user is None:
        raise NotAuthenticated("Not authenticated")

    recipe = db.get(Recipe, recipe_id)
    if not recipe:
        raise RecipeNotFound("Recipe not found")

    if user.can_generate_images is False:
        raise GenerationDisabled("Image generation disabled for this account")

    today = utc_date_key()
    if get_daily_count(db, today) >= settings.daily_image_limit:
        raise DailyLimitReached(settings.daily_image_limit)

    # Counted before the provider call
    count = increment_daily_count(db, today)
    logger.info(f"Image generation {count}/{settings.daily_image_limit} for {today}")

    recipe.image_generation_status = "generating"
    recipe.updated_at = utcnow()
    image_prompt = prompt or recipe.image_prompt or recipe.name
    image = RecipeImage(
        recipe_id=recipe.id,
        prompt=image_prompt,
        status="generating",
        is_accepted=False,
        source="ai",
        created_at=utcnow(),
        created_by=user.id,
    )
    db.add(image)
    db.commit()
    db.refresh(image)

    try:
        generated = image_client.generate(image_prompt)

        try:
            put = (store or get_store()).put_bytes(
                data=generated.data, content_type=generated.content_type
            )
        except Exception as e:
            raise UploadFailed(f"Failed to upload image to storage: {e}")

        image.image_key = put.key
        image.status = "completed"
        db.commit()

        if not has_accepted_image(db, recipe.id):
            set_accepted_image(db, recipe, image, image_prompt=image_prompt)
        else:
            recipe.image_generation_status = "completed"
            recipe.updated_at = utcnow()
            db.commit()

        logger.info(f"Generated image {image.id} for recipe {recipe.id} ({generated.model})")
        return image

    except Exception as e:
        logger.error(f"Image generation failed for recipe {recipe.id}: {e}")
        _mark_failed(db, recipe, image)
        if isinstance(e, RecipeBoxError):
            raise
        raise RecipeBoxError(str(e)) from e


# --- Manual image management ---

def accept_recipe_image(db: Session, user: User, image_id: str) -> RecipeImage:
    image = db.get(RecipeImage, image_id)
    if not image:
        raise ImageNotFound("Image entry not found")
    if image.created_by != user.id:
        raise NotAuthorized("Not authorized")
    if not image.image_key:
        raise ImageNotReady("Image is not yet available")

    set_accepted_image(db, image.recipe, image, image_prompt=image.prompt)
    logger.info(f"Accepted image {image.id} for recipe {image.recipe_id}")
    return image


def create_uploaded_image(
    db: Session,
    user: User,
    recipe_id: str,
    image_key: str,
    replace_prompt: bool = False,
) -> RecipeImage:
    """Register a blob the browser uploaded directly and make it the recipe photo."""
    recipe = db.get(Recipe, recipe_id)
    if not recipe:
        raise RecipeNotFound("Recipe not found")

    image = RecipeImage(
        recipe_id=recipe.id,
        image_key=image_key,
        prompt=UPLOADED_PROMPT,
        status="completed",
        is_accepted=False,
        source="upload",
        created_at=utcnow(),
        created_by=user.id,
    )
    db.add(image)
    db.flush()

    set_accepted_image(
        db, recipe, image, image_prompt=UPLOADED_PROMPT if replace_prompt else None
    )
    db.refresh(image)
    return image
