"""SQLAlchemy ORM models for RecipeBox.

Tables:
- users: the family account (fixed email, PIN hash, image permission flag)
- recipes: recipe cards with their displayed image and generation status
- recipe_images: uploaded or AI-generated image variants for a recipe
- cooking_history: one row per time a recipe was cooked
- scheduled_meals: planned meals, optionally turned into history on completion
- image_generation_limits: per-day counter for AI image generations
- openrouter_models: cached free-model price list
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Integer,
    Boolean,
    Float,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """The shared family account.

    Auth is single-tenant: one row keyed by the configured family email.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    pin_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # None means "not restricted"; only an explicit False blocks generation
    can_generate_images: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Recipe(Base):
    """Core recipe card."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_created_at", "created_at"),
        Index("ix_recipes_name", "name"),
        Index("ix_recipes_created_by", "created_by"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Blob key of the displayed image
    image_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # generating | completed | failed
    image_generation_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    # upload | ai
    image_source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    image_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_cooked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    created_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    images: Mapped[list["RecipeImage"]] = relationship(
        "RecipeImage", back_populates="recipe", cascade="all, delete-orphan",
        order_by="desc(RecipeImage.created_at)"
    )
    history: Mapped[list["CookingHistory"]] = relationship(
        "CookingHistory", back_populates="recipe", cascade="all, delete-orphan"
    )
    scheduled_meals: Mapped[list["ScheduledMeal"]] = relationship(
        "ScheduledMeal", back_populates="recipe", cascade="all, delete-orphan"
    )


class RecipeImage(Base):
    """Image variant for a recipe with status tracking."""
    __tablename__ = "recipe_images"
    __table_args__ = (
        Index("ix_recipe_images_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )

    # Set once the blob is stored
    image_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    # Status: generating | completed | failed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="generating")
    is_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # upload | ai
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="ai")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    created_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="images")


class CookingHistory(Base):
    """Logs one cooking of a recipe."""
    __tablename__ = "cooking_history"
    __table_args__ = (
        Index("ix_cooking_history_recipe_id", "recipe_id"),
        Index("ix_cooking_history_cooked_at", "cooked_at"),
        Index("ix_cooking_history_cooked_by", "cooked_by"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    cooked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cooked_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="history")


class ScheduledMeal(Base):
    """A recipe planned for a given date."""
    __tablename__ = "scheduled_meals"
    __table_args__ = (
        Index("ix_scheduled_meals_scheduled_for", "scheduled_for"),
        Index("ix_scheduled_meals_recipe_id", "recipe_id"),
        Index("ix_scheduled_meals_created_by", "created_by"),
        Index("ix_scheduled_meals_completed", "completed"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="scheduled_meals")


class ImageGenerationLimit(Base):
    """Number of AI image generations started on a calendar date (UTC)."""
    __tablename__ = "image_generation_limits"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    date: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)  # YYYY-MM-DD
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class OpenRouterModel(Base):
    """Free text model from the OpenRouter catalogue. Prices are USD per 1M tokens."""
    __tablename__ = "openrouter_models"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    model_id: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    input_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    output_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    context_window: Mapped[int] = mapped_column(Integer, nullable=False, default=4096)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
