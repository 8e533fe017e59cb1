import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..ai.openrouter import OpenRouterClient
from ..db import get_db
from ..deps import get_current_user
from ..models import User
from ..schemas import SuggestionRequest, SuggestionOut
from ..services.suggestions import SuggestionError, generate_suggestions

router = APIRouter()
logger = logging.getLogger("recipebox.suggestions")


@router.post("/suggestions", response_model=SuggestionOut)
def suggest_recipes(
    payload: SuggestionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Ask an OpenRouter model for recipe ideas the family does not have yet."""
    try:
        with OpenRouterClient() as client:
            return generate_suggestions(db, payload.model_id, payload.prompt, client=client)
    except SuggestionError as e:
        logger.warning(f"Suggestions failed ({e.status_code}): {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
