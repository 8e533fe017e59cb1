"""OpenRouter model catalogue.

Endpoints:
- GET /api/models - Free text models (cached), or the built-in list
- POST /api/models/sync - Refresh from OpenRouter now
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..ai.openrouter import OpenRouterClient, OpenRouterError
from ..db import get_db
from ..deps import get_current_user
from ..infra.redis_cache import get_or_set_json_sync, invalidate
from ..models import User
from ..schemas import ModelOut, ModelSyncOut
from ..services import model_sync
from ..services.model_sync import MODELS_CACHE_KEY
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("recipebox.models")


@router.get("/models", response_model=list[ModelOut])
def list_models(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    models, _hit = get_or_set_json_sync(
        MODELS_CACHE_KEY,
        settings.models_cache_ttl_sec,
        lambda: model_sync.list_models(db),
    )
    return models


@router.post("/models/sync", response_model=ModelSyncOut)
def sync_models(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        with OpenRouterClient() as client:
            result = model_sync.sync_free_models(db, client=client)
    except (OpenRouterError, httpx.HTTPError) as e:
        logger.error(f"Model sync failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    invalidate(MODELS_CACHE_KEY)
    return ModelSyncOut(
        count=result.count,
        created=result.created,
        updated=result.updated,
        deleted=result.deleted,
    )
