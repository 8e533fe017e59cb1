import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from sqlalchemy.orm import Session

from ..ai.openrouter import OpenRouterClient, OpenRouterError
from ..models import Recipe
from ..schemas import SuggestedRecipe, SuggestionOut, SuggestionUsage
from ..settings import settings
from .model_sync import find_model

logger = logging.getLogger("recipebox.suggestions")

SYSTEM_PROMPT = """You are a helpful culinary assistant that suggests recipes. You provide recipe suggestions in a structured JSON format.

When suggesting recipes, be creative and diverse. Consider different cuisines, difficulty levels, and ingredients.

IMPORTANT: You must respond with ONLY a valid JSON object in this exact format, no other text:
{
  "recipes": [
    {
      "name": "Recipe Name",
      "description": "A brief description of the recipe (1-2 sentences)",
      "imagePrompt": "A short English phrase describing the dish for image generation (e.g., 'creamy mushroom risotto with parmesan')"
    }
  ]
}

Generate 3-8 recipe suggestions based on the user's request. Make sure not to suggest recipes that already exist in their collection (if any are provided)."""

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class SuggestionError(Exception):
    """Raised with a user-facing message and HTTP status."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ParsedSuggestions:
    recipes: list[SuggestedRecipe] = field(default_factory=list)
    parse_error: bool = False


def build_user_prompt(prompt: str, existing: list[Recipe]) -> str:
    context = ""
    if existing:
        lines = [
            f"{i}. {r.name}" + (f" - {r.description}" if r.description else "")
            for i, r in enumerate(existing, start=1)
        ]
        context = "Here are the recipes I already have in my collection:\n" + "\n".join(lines) + "\n\n"
    return (
        f"{context}{prompt}\n\n"
        "Please suggest some recipes based on my request above. "
        "Remember to respond with ONLY the JSON object."
    )


def parse_suggestions(raw: str) -> ParsedSuggestions:
    """Parse the model reply, tolerating a ```json fenced block."""
    match = FENCED_JSON.search(raw)
    json_str = match.group(1).strip() if match else raw

    try:
        parsed = json.loads(json_str)
    except (json.JSONDecodeError, TypeError):
        logger.error(f"Failed to parse recipe suggestions: {raw[:200]}")
        return ParsedSuggestions(parse_error=True)

    items = parsed.get("recipes") if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        return ParsedSuggestions()

    recipes = [
        SuggestedRecipe(
            name=str(item.get("name") or ""),
            description=str(item.get("description") or ""),
            image_prompt=str(item["imagePrompt"]) if item.get("imagePrompt") else None,
        )
        for item in items
        if isinstance(item, dict)
    ]
    return ParsedSuggestions(recipes=recipes)


def estimate_usage(usage: Optional[dict[str, Any]], model: dict[str, Any]) -> Optional[SuggestionUsage]:
    if not usage:
        return None
    prompt_tokens = usage.get("prompt_tokens") or 0
    completion_tokens = usage.get("completion_tokens") or 0
    cost = (prompt_tokens * model["input_price"] + completion_tokens * model["output_price"]) / 1_000_000
    return SuggestionUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        estimated_cost=cost,
    )


def generate_suggestions(
    db: Session,
    model_id: str,
    prompt: str,
    client: OpenRouterClient,
) -> SuggestionOut:
    if not client.is_available():
        raise SuggestionError(
            "OpenRouter API key not configured. Please add OPENROUTER_API_KEY to your environment.",
            status_code=503,
        )

    model = find_model(db, model_id)
    if not model:
        raise SuggestionError(f"Unknown model: {model_id}", status_code=400)

    existing = db.query(Recipe).order_by(Recipe.created_at.desc()).all()
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(prompt, existing)},
    ]

    try:
        result = client.chat(model=model_id, messages=messages)
    except httpx.TimeoutException:
        raise SuggestionError(
            f"Request timed out after {settings.suggestions_timeout_sec:g} seconds. Please try again.",
            status_code=504,
        )
    except (OpenRouterError, httpx.HTTPError) as e:
        raise SuggestionError(f"Failed to generate suggestions: {e}")

    choices = result.get("choices") or [{}]
    raw = ((choices[0] or {}).get("message") or {}).get("content") or ""
    parsed = parse_suggestions(raw)

    return SuggestionOut(
        recipes=parsed.recipes,
        raw_response=raw,
        parse_error=parsed.parse_error,
        usage=estimate_usage(result.get("usage"), model),
    )
