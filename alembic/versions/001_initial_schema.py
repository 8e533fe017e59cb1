"""Initial schema: users, recipes, recipe_images, cooking_history, scheduled_meals,
image_generation_limits, openrouter_models

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Family account
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("pin_hash", sa.String(255), nullable=False),
        sa.Column("can_generate_images", sa.Boolean, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Recipes table
    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("image_key", sa.String(500), nullable=True),
        sa.Column("image_generation_status", sa.String(20), nullable=True),
        sa.Column("image_source", sa.String(20), nullable=True),
        sa.Column("image_prompt", sa.Text, nullable=True),
        sa.Column("last_cooked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_recipes_created_at", "recipes", ["created_at"])
    op.create_index("ix_recipes_name", "recipes", ["name"])
    op.create_index("ix_recipes_created_by", "recipes", ["created_by"])

    # Recipe images table
    op.create_table(
        "recipe_images",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("image_key", sa.String(500), nullable=True),
        sa.Column("prompt", sa.Text, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="generating"),
        sa.Column("is_accepted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("source", sa.String(20), nullable=False, server_default="ai"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_recipe_images_recipe_id", "recipe_images", ["recipe_id"])

    # Cooking history
    op.create_table(
        "cooking_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("cooked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("cooked_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_cooking_history_recipe_id", "cooking_history", ["recipe_id"])
    op.create_index("ix_cooking_history_cooked_at", "cooking_history", ["cooked_at"])
    op.create_index("ix_cooking_history_cooked_by", "cooking_history", ["cooked_by"])

    # Meal planner
    op.create_table(
        "scheduled_meals",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_scheduled_meals_scheduled_for", "scheduled_meals", ["scheduled_for"])
    op.create_index("ix_scheduled_meals_recipe_id", "scheduled_meals", ["recipe_id"])
    op.create_index("ix_scheduled_meals_created_by", "scheduled_meals", ["created_by"])
    op.create_index("ix_scheduled_meals_completed", "scheduled_meals", ["completed"])

    # Daily generation counter (YYYY-MM-DD, UTC)
    op.create_table(
        "image_generation_limits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("date", sa.String(10), unique=True, nullable=False),
        sa.Column("count", sa.Integer, nullable=False, server_default="0"),
    )

    # Free OpenRouter models, prices per 1M tokens
    op.create_table(
        "openrouter_models",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("model_id", sa.String(200), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("input_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("output_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("context_window", sa.Integer, nullable=False, server_default="4096"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("openrouter_models")
    op.drop_table("image_generation_limits")
    op.drop_table("scheduled_meals")
    op.drop_table("cooking_history")
    op.drop_table("recipe_images")
    op.drop_table("recipes")
    op.drop_table("users")
