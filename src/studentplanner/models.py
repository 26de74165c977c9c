"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from studentplanner.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryItem(Base):
    """Food item held by a user in the fridge, pantry or freezer."""

    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    location: Mapped[str] = mapped_column(String(16), nullable=False, default="fridge")
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    purchase_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    store: Mapped[str | None] = mapped_column(String, nullable=True)
    cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        CheckConstraint(
            "location IN ('fridge', 'pantry', 'freezer')", name="ck_inventory_location"
        ),
        Index("idx_inventory_owner_id", "owner_id"),
        Index("idx_inventory_expiry_date", "expiry_date"),
        Index("idx_inventory_category", "category"),
    )


class Recipe(Base):
    """Catalog recipe. Read-only for the planning core."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    instructions: Mapped[list] = mapped_column(JSON, default=list)
    cooking_time: Mapped[int] = mapped_column(Integer, nullable=False)
    prep_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    servings: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    nutrition: Mapped[dict] = mapped_column(JSON, default=dict)
    storage_info: Mapped[dict] = mapped_column(JSON, default=dict)
    bulk_multiplier: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False, default="public")
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        CheckConstraint("difficulty BETWEEN 1 AND 5", name="ck_recipe_difficulty"),
        CheckConstraint("servings > 0", name="ck_recipe_servings"),
        Index("idx_recipes_visibility", "visibility"),
        Index("idx_recipes_cooking_time", "cooking_time"),
    )


class MealPlan(Base):
    """Generated weekly meal plan. One row per (owner, week start)."""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    meals: Mapped[dict] = mapped_column(JSON, default=dict)
    shopping_list: Mapped[list] = mapped_column(JSON, default=list)
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    nutrition_summary: Mapped[dict] = mapped_column(JSON, default=dict)
    plan_metadata: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("owner_id", "week_start", name="uq_meal_plan_owner_week"),
        Index("idx_meal_plans_owner_id", "owner_id"),
    )


class Store(Base):
    """Physical store location."""

    __tablename__ = "stores"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    opening_hours: Mapped[dict] = mapped_column(JSON, default=dict)
    price_level: Mapped[str] = mapped_column(String(16), nullable=False, default="mid")
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=3.0)
    carries: Mapped[list | None] = mapped_column(JSON, nullable=True)
    item_prices: Mapped[dict] = mapped_column(JSON, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "price_level IN ('budget', 'mid', 'premium')", name="ck_store_price_level"
        ),
        Index("idx_stores_is_active", "is_active"),
    )
