"""Pydantic schemas shared by the planning components."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

StorageLocation = Literal["fridge", "pantry", "freezer"]
MealSlot = Literal["breakfast", "lunch", "dinner"]
Priority = Literal["essential", "optional"]
PriceLevel = Literal["budget", "mid", "premium"]
TravelMode = Literal["walk", "bike", "train"]

MEAL_SLOTS: tuple[MealSlot, ...] = ("breakfast", "lunch", "dinner")


class OrmModel(BaseModel):
    """Base for schemas read straight off SQLAlchemy rows."""

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Inventory
# =============================================================================


class InventoryItemCreate(BaseModel):
    """Item to add to a user's inventory."""

    name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = ""
    category: str | None = None
    location: StorageLocation = "fridge"
    expiry_date: date | None = None
    purchase_date: date | None = None
    store: str | None = None
    cost: float | None = Field(None, ge=0)


class InventoryItemUpdate(BaseModel):
    """Partial update of an inventory item."""

    name: str | None = Field(None, min_length=1)
    quantity: float | None = Field(None, ge=0)
    unit: str | None = None
    category: str | None = None
    location: StorageLocation | None = None
    expiry_date: date | None = None
    purchase_date: date | None = None
    store: str | None = None
    cost: float | None = Field(None, ge=0)


class InventoryItemRead(OrmModel):
    """Inventory item as stored."""

    id: str
    owner_id: str
    name: str
    quantity: float
    unit: str
    category: str
    location: StorageLocation
    expiry_date: date | None = None
    purchase_date: date | None = None
    store: str | None = None
    cost: float | None = None


class InventoryStatus(BaseModel):
    """Summary of a user's inventory."""

    total_items: int
    expiring_soon: list[InventoryItemRead]
    low_stock: list[InventoryItemRead]
    category_counts: dict[str, int]


class ExpiryAlert(BaseModel):
    """Item close to its expiry date."""

    item: InventoryItemRead
    days_until_expiry: int
    urgency: Literal["low", "medium", "high"]


# =============================================================================
# Recipes
# =============================================================================


class RecipeIngredient(BaseModel):
    """Ingredient line of a recipe."""

    name: str
    quantity: float = Field(1.0, ge=0)
    unit: str = ""
    optional: bool = False


class NutritionInfo(BaseModel):
    """Per-serving nutrition."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class StorageInfo(BaseModel):
    """How long a cooked recipe keeps."""

    fridge_days: int = Field(0, ge=0)
    freezer_days: int = Field(0, ge=0)


class RecipeData(OrmModel):
    """Recipe as served by the read-only catalog."""

    id: str
    name: str
    description: str | None = None
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    cooking_time: int = Field(ge=0)
    prep_time: int = Field(0, ge=0)
    difficulty: int = Field(3, ge=1, le=5)
    servings: int = Field(1, gt=0)
    nutrition: NutritionInfo = Field(default_factory=NutritionInfo)
    storage_info: StorageInfo = Field(default_factory=StorageInfo)
    bulk_multiplier: float = Field(1.0, ge=1.0)
    tags: list[str] = Field(default_factory=list)
    visibility: Literal["public", "private"] = "public"
    created_by: str | None = None

    @field_validator("nutrition", "storage_info", mode="before")
    @classmethod
    def _empty_json_to_default(cls, value):
        return {} if value is None else value

    @property
    def total_time(self) -> int:
        """Cooking plus preparation time in minutes."""
        return self.cooking_time + self.prep_time


# =============================================================================
# Planning
# =============================================================================


class CookingTimeLimits(BaseModel):
    """Per-slot ceilings on cook + prep time, in minutes."""

    breakfast: int = Field(10, gt=0)
    lunch: int = Field(20, gt=0)
    dinner: int = Field(30, gt=0)

    def for_slot(self, slot: MealSlot) -> int:
        return getattr(self, slot)


class MealConstraints(BaseModel):
    """Constraints for generating a weekly meal plan."""

    budget: float = Field(gt=0)
    cooking_time_limits: CookingTimeLimits = Field(default_factory=CookingTimeLimits)
    dietary_restrictions: list[str] = Field(default_factory=list)
    servings: int = Field(1, gt=0)
    bulk_cooking_preference: bool = False
    available_ingredients: list[str] | None = None
    max_difficulty: int = Field(3, ge=1, le=5)
    week_start: date | None = None


class PlanWarning(BaseModel):
    """Structured warning a UI can render next to a plan or allocation."""

    code: Literal[
        "budget_shortfall",
        "no_candidates",
        "bulk_storage",
        "unallocated_item",
        "over_budget",
    ]
    message: str
    day: date | None = None
    slot: MealSlot | None = None
    item: str | None = None


class ShoppingItem(BaseModel):
    """Line of a shopping list."""

    name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = ""
    priority: Priority = "essential"
    category: str | None = None
    estimated_cost: float | None = Field(None, ge=0)


class PlannedMeal(BaseModel):
    """Recipe assigned to one slot of the plan."""

    recipe: RecipeData
    servings: int
    estimated_cost: float


class DayMeals(BaseModel):
    """The three slots of one day."""

    breakfast: PlannedMeal | None = None
    lunch: PlannedMeal | None = None
    dinner: PlannedMeal | None = None


class BulkCookingPlan(BaseModel):
    """Batch-cooking recommendation for one recipe."""

    recipe_id: str
    recipe_name: str
    days: int
    multiplier: int
    total_servings: int
    storage: Literal["fridge", "freezer"] | None
    recommendation: str


class WeeklyMealPlan(BaseModel):
    """A 7-day, 3-slot meal plan with its shopping delta."""

    id: str | None = None
    owner_id: str
    week_start: date
    meals: dict[date, DayMeals]
    shopping_list: list[ShoppingItem] = Field(default_factory=list)
    total_cost: float = 0.0
    nutrition_summary: NutritionInfo = Field(default_factory=NutritionInfo)
    bulk_cooking: list[BulkCookingPlan] = Field(default_factory=list)
    warnings: list[PlanWarning] = Field(default_factory=list)

    def filled_slots(self) -> list[tuple[date, MealSlot, PlannedMeal]]:
        """All assigned slots in chronological order."""
        filled = []
        for day in sorted(self.meals):
            for slot in MEAL_SLOTS:
                meal = getattr(self.meals[day], slot)
                if meal is not None:
                    filled.append((day, slot, meal))
        return filled

    @property
    def empty_slot_count(self) -> int:
        return len(self.meals) * len(MEAL_SLOTS) - len(self.filled_slots())


# =============================================================================
# Stores and travel
# =============================================================================


class Coordinates(BaseModel):
    """WGS84 position."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Location(BaseModel):
    """Named place used as a route endpoint."""

    name: str
    coordinates: Coordinates | None = None

    @property
    def cache_key(self) -> str:
        if self.coordinates is None:
            return self.name.lower()
        return f"{self.coordinates.latitude:.5f},{self.coordinates.longitude:.5f}"


class StoreData(OrmModel):
    """Store that can fulfil shopping items."""

    id: str
    name: str
    coordinates: Coordinates | None = None
    opening_hours: dict[str, dict[str, str]] = Field(default_factory=dict)
    price_level: PriceLevel = "mid"
    rating: float = Field(3.0, ge=1, le=5)
    carries: list[str] | None = None
    item_prices: dict[str, float] = Field(default_factory=dict)

    @property
    def location(self) -> Location:
        return Location(name=self.name, coordinates=self.coordinates)


class WeatherForecast(BaseModel):
    """Forecast for one location and day."""

    condition: Literal["sunny", "cloudy", "rainy", "snowy", "windy", "foggy"] = "cloudy"
    temperature_c: float = 12.0
    wind_speed_mph: float = 8.0
    precipitation_mm: float = 0.0


class TravelConditions(BaseModel):
    """Traveller and weather state used to adjust route durations."""

    weather: WeatherForecast | None = None
    energy: float = Field(1.0, ge=0, le=1)
    departure: datetime | None = None
    carrying_equipment: bool = False


class RouteEstimate(BaseModel):
    """Estimated journey for a single travel mode."""

    mode: TravelMode
    distance_m: float = Field(ge=0)
    duration_min: int = Field(ge=0)
    elevation_m: float = 0.0
    difficulty: Literal["easy", "moderate", "hard"] = "easy"
    weather_suitability: float = Field(1.0, ge=0, le=1)
    safety_rating: int = Field(4, ge=1, le=5)
    cost: float = Field(0.0, ge=0)


# =============================================================================
# Shopping optimization
# =============================================================================


class ShoppingConstraints(BaseModel):
    """Options for allocating a shopping list across stores."""

    max_budget: float | None = Field(None, gt=0)
    home: Location | None = None
    travel_mode: TravelMode | None = None
    travel_conditions: TravelConditions | None = None


class ItemAllocation(BaseModel):
    """Where one shopping item will be bought."""

    item: ShoppingItem
    store_id: str
    price: float


class StoreVisit(BaseModel):
    """One stop of the shopping trip."""

    store_id: str
    store_name: str
    items: list[str]
    subtotal: float
    travel_minutes: int


class OptimizedShoppingList(BaseModel):
    """Result of allocating a shopping list across stores."""

    allocations: list[ItemAllocation] = Field(default_factory=list)
    visit_order: list[StoreVisit] = Field(default_factory=list)
    total_cost: float = 0.0
    travel_penalty: float = 0.0
    total_time: int = 0
    unallocated: list[ShoppingItem] = Field(default_factory=list)
    warnings: list[PlanWarning] = Field(default_factory=list)

    @property
    def store_ids(self) -> list[str]:
        return [visit.store_id for visit in self.visit_order]
