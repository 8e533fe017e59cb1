"""Daily sync of free OpenRouter text models into ``openrouter_models``.

The upstream list is the source of truth: rows are upserted by model id and
rows missing upstream are deleted.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..ai.openrouter import OpenRouterClient
from ..core.clock import utcnow
from ..models import OpenRouterModel

logger = logging.getLogger("recipebox.models_sync")

DEFAULT_CONTEXT_WINDOW = 4096
MODELS_CACHE_KEY = "recipebox:models:v1"

# Paid models offered when no free models have been synced yet (USD per 1M tokens)
OPENROUTER_MODELS = [
    {"model_id": "google/gemini-2.0-flash-001", "name": "Gemini 2.0 Flash", "input_price": 0.1, "output_price": 0.4, "context_window": 1000000},
    {"model_id": "google/gemini-2.0-flash-lite-001", "name": "Gemini 2.0 Flash Lite", "input_price": 0.075, "output_price": 0.3, "context_window": 1000000},
    {"model_id": "anthropic/claude-3.5-haiku", "name": "Claude 3.5 Haiku", "input_price": 0.8, "output_price": 4, "context_window": 200000},
    {"model_id": "anthropic/claude-3.5-sonnet", "name": "Claude 3.5 Sonnet", "input_price": 3, "output_price": 15, "context_window": 200000},
    {"model_id": "openai/gpt-4o-mini", "name": "GPT-4o Mini", "input_price": 0.15, "output_price": 0.6, "context_window": 128000},
    {"model_id": "openai/gpt-4o", "name": "GPT-4o", "input_price": 2.5, "output_price": 10, "context_window": 128000},
    {"model_id": "meta-llama/llama-3.3-70b-instruct", "name": "Llama 3.3 70B", "input_price": 0.3, "output_price": 0.4, "context_window": 131072},
    {"model_id": "deepseek/deepseek-chat", "name": "DeepSeek V3", "input_price": 0.14, "output_price": 0.28, "context_window": 64000},
]


@dataclass
class SyncResult:
    count: int
    created: int
    updated: int
    deleted: int


def _price(value: Any) -> Optional[float]:
    """Parse an OpenRouter price string; None when missing or not a number."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def filter_free_text_models(raw_models: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep zero-cost text->text models, prices converted to per-1M tokens."""
    free = []
    for model in raw_models:
        pricing = model.get("pricing") or {}
        prompt_price = _price(pricing.get("prompt"))
        completion_price = _price(pricing.get("completion"))
        modality = (model.get("architecture") or {}).get("modality") or ""

        # Unparseable prices never count as free
        if prompt_price is None or completion_price is None:
            continue
        if prompt_price != 0 or completion_price != 0:
            continue
        if "text->text" not in modality:
            continue

        free.append({
            "model_id": model["id"],
            "name": model.get("name") or model["id"],
            "input_price": prompt_price * 1_000_000,
            "output_price": completion_price * 1_000_000,
            "context_window": model.get("context_length") or DEFAULT_CONTEXT_WINDOW,
        })
    return free


def reconcile_models(db: Session, models: list[dict[str, Any]]) -> SyncResult:
    """Upsert ``models`` by model id and delete rows absent from it. One commit."""
    incoming = {m["model_id"]: m for m in models}
    existing = {row.model_id: row for row in db.query(OpenRouterModel).all()}

    created = updated = deleted = 0
    fields = ("name", "input_price", "output_price", "context_window")

    for model_id, data in incoming.items():
        row = existing.get(model_id)
        if row is None:
            db.add(OpenRouterModel(**data))
            created += 1
            continue
        if any(getattr(row, f) != data[f] for f in fields):
            for f in fields:
                setattr(row, f, data[f])
            row.updated_at = utcnow()
            updated += 1

    for model_id in existing.keys() - incoming.keys():
        db.delete(existing[model_id])
        deleted += 1

    db.commit()
    return SyncResult(count=len(incoming), created=created, updated=updated, deleted=deleted)


def sync_free_models(db: Session, client: OpenRouterClient) -> SyncResult:
    raw = client.list_models()
    result = reconcile_models(db, filter_free_text_models(raw))
    logger.info(
        f"Model sync: {result.count} free models "
        f"(+{result.created} ~{result.updated} -{result.deleted})"
    )
    return result


def _as_dict(row: OpenRouterModel) -> dict[str, Any]:
    return {
        "model_id": row.model_id,
        "name": row.name,
        "input_price": row.input_price,
        "output_price": row.output_price,
        "context_window": row.context_window,
    }


def find_model(db: Session, model_id: str) -> Optional[dict[str, Any]]:
    """Look up pricing for a model: synced rows first, then the built-in list."""
    row = db.query(OpenRouterModel).filter(OpenRouterModel.model_id == model_id).first()
    if row:
        return _as_dict(row)
    for model in OPENROUTER_MODELS:
        if model["model_id"] == model_id:
            return dict(model)
    return None


def list_models(db: Session) -> list[dict[str, Any]]:
    rows = db.query(OpenRouterModel).order_by(OpenRouterModel.name).all()
    if not rows:
        return [dict(m) for m in OPENROUTER_MODELS]
    return [_as_dict(r) for r in rows]
