"""Pydantic schemas for RecipeBox API.

Request/response models for:
- Auth (PIN login)
- Recipes and recipe images
- Cooking history
- Scheduled meals
- OpenRouter models and recipe suggestions
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# --- Auth ---

class AuthStatusOut(BaseModel):
    exists: bool


class SetupRequest(BaseModel):
    pin: str
    confirm_pin: Optional[str] = None


class LoginRequest(BaseModel):
    pin: str


class ChangePinRequest(BaseModel):
    current_pin: str
    new_pin: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: str
    email: str
    can_generate_images: Optional[bool]

    class Config:
        from_attributes = True


class SuccessOut(BaseModel):
    success: bool = True


# --- Recipe Image ---

class RecipeImageOut(BaseModel):
    id: str
    recipe_id: str
    status: str  # generating | completed | failed
    prompt: str
    source: str
    is_accepted: bool
    image_key: Optional[str]
    image_url: Optional[str] = None  # Constructed from image_key
    created_at: datetime
    created_by: Optional[str]

    class Config:
        from_attributes = True


class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = Field(None, max_length=500)


class GenerateImageOut(BaseModel):
    success: bool
    image_entry_id: str


class UploadedImageRequest(BaseModel):
    image_key: str = Field(..., min_length=1, max_length=500)


class UploadUrlOut(BaseModel):
    upload_url: str
    image_key: str


# --- Recipe ---

class RecipeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    image_key: Optional[str] = None
    image_prompt: Optional[str] = None


class RecipePatch(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    image_key: Optional[str] = None
    image_prompt: Optional[str] = None


class RecipeOut(BaseModel):
    id: str
    name: str
    description: Optional[str]
    rating: Optional[int]
    image_key: Optional[str]
    image_url: Optional[str] = None
    image_generation_status: Optional[str]
    image_source: Optional[str]
    image_prompt: Optional[str]
    last_cooked_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str]

    class Config:
        from_attributes = True


# --- Cooking History ---

class HistoryCreate(BaseModel):
    recipe_id: str
    cooked_at: Optional[datetime] = None  # defaults to now
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class HistoryPatch(BaseModel):
    cooked_at: Optional[datetime] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class HistoryOut(BaseModel):
    id: str
    recipe_id: str
    cooked_at: datetime
    notes: Optional[str]
    rating: Optional[int]
    cooked_by: Optional[str]

    class Config:
        from_attributes = True


class HistoryWithRecipeOut(HistoryOut):
    recipe: Optional[RecipeOut] = None


# --- Scheduled Meals ---

class ScheduledMealCreate(BaseModel):
    recipe_id: str
    scheduled_for: datetime
    notes: Optional[str] = None


class ScheduledMealPatch(BaseModel):
    scheduled_for: Optional[datetime] = None
    notes: Optional[str] = None


class CompleteMealRequest(BaseModel):
    add_to_history: bool = False
    history_notes: Optional[str] = None
    history_rating: Optional[int] = Field(None, ge=1, le=5)


class ScheduledMealOut(BaseModel):
    id: str
    recipe_id: str
    scheduled_for: datetime
    notes: Optional[str]
    completed: bool
    created_by: Optional[str]
    recipe: Optional[RecipeOut] = None

    class Config:
        from_attributes = True


# --- Models & Suggestions ---

class ModelOut(BaseModel):
    model_id: str
    name: str
    input_price: float
    output_price: float
    context_window: int

    class Config:
        from_attributes = True
        protected_namespaces = ()


class ModelSyncOut(BaseModel):
    count: int
    created: int
    updated: int
    deleted: int


class SuggestionRequest(BaseModel):
    model_id: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1, max_length=2000)

    class Config:
        protected_namespaces = ()


class SuggestedRecipe(BaseModel):
    name: str
    description: str
    image_prompt: Optional[str] = None


class SuggestionUsage(BaseModel):
    prompt_tokens: int
    completion_tokens: int
    estimated_cost: float


class SuggestionOut(BaseModel):
    recipes: list[SuggestedRecipe]
    raw_response: str
    parse_error: bool = False
    usage: Optional[SuggestionUsage] = None

