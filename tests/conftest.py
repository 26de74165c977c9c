"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studentplanner.database import Base, transaction
from studentplanner.inventory.store import InventoryStore
from studentplanner.models import Recipe
from studentplanner.plan.planner import MealPlanPlanner
from studentplanner.recipes.catalog import RecipeCatalog
from studentplanner.repository import PlanRepository, StoreRepository
from studentplanner.schemas import (
    Coordinates,
    InventoryItemCreate,
    Location,
    RecipeData,
    StoreData,
)

# Monday
TODAY = date(2024, 1, 15)

HOME = Location(name="five-ways", coordinates=Coordinates(latitude=52.4751, longitude=-1.9180))


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# =============================================================================
# Builders
# =============================================================================


def make_recipe(**overrides) -> RecipeData:
    """Recipe with sensible defaults, overridable per test."""
    data = {
        "id": "recipe-1",
        "name": "Test Recipe",
        "ingredients": [],
        "cooking_time": 10,
        "prep_time": 0,
        "difficulty": 2,
        "servings": 1,
        "tags": [],
    }
    data.update(overrides)
    return RecipeData.model_validate(data)


def make_store(**overrides) -> StoreData:
    data = {
        "id": "store-1",
        "name": "Test Store",
        "coordinates": {"latitude": 52.4760, "longitude": -1.9170},
        "price_level": "mid",
        "rating": 4.0,
    }
    data.update(overrides)
    return StoreData.model_validate(data)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across sessions of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that write from several threads."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'planner.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def inventory(session_factory) -> InventoryStore:
    return InventoryStore(session_factory, today=lambda: TODAY)


@pytest.fixture
def catalog(session_factory) -> RecipeCatalog:
    return RecipeCatalog(session_factory)


@pytest.fixture
def plans(session_factory) -> PlanRepository:
    return PlanRepository(session_factory)


@pytest.fixture
def store_repository(session_factory) -> StoreRepository:
    return StoreRepository(session_factory)


@pytest.fixture
def planner(inventory, catalog, plans) -> MealPlanPlanner:
    return MealPlanPlanner(inventory, catalog, plans, today=lambda: TODAY)


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_recipes() -> list[RecipeData]:
    """One quick egg breakfast, a breakfast needing shopping, lunch and dinner."""
    return [
        make_recipe(
            id="scrambled-eggs",
            name="Scrambled Eggs",
            ingredients=[{"name": "eggs", "quantity": 2}],
            cooking_time=5,
            prep_time=2,
            difficulty=1,
            nutrition={"calories": 200, "protein": 14, "carbs": 2, "fat": 15},
            tags=["breakfast", "vegetarian"],
        ),
        make_recipe(
            id="avocado-toast",
            name="Avocado Toast",
            ingredients=[
                {"name": "avocado", "quantity": 1},
                {"name": "bread", "quantity": 2, "unit": "slices"},
            ],
            cooking_time=5,
            prep_time=3,
            difficulty=1,
            nutrition={"calories": 350, "protein": 8, "carbs": 30, "fat": 20},
            tags=["breakfast", "vegetarian"],
        ),
        make_recipe(
            id="full-english",
            name="Full English",
            ingredients=[
                {"name": "sausages", "quantity": 2},
                {"name": "bacon", "quantity": 2, "unit": "slices"},
                {"name": "eggs", "quantity": 2},
            ],
            cooking_time=30,
            prep_time=10,
            difficulty=2,
            tags=["breakfast"],
        ),
        make_recipe(
            id="pasta-pomodoro",
            name="Pasta Pomodoro",
            ingredients=[
                {"name": "pasta", "quantity": 100, "unit": "g"},
                {"name": "tomato sauce", "quantity": 100, "unit": "ml"},
                {"name": "parmesan", "quantity": 10, "unit": "g", "optional": True},
            ],
            cooking_time=12,
            prep_time=3,
            difficulty=1,
            nutrition={"calories": 450, "protein": 14, "carbs": 80, "fat": 8},
            tags=["lunch", "vegetarian"],
        ),
        make_recipe(
            id="chicken-stir-fry",
            name="Chicken Stir Fry",
            ingredients=[
                {"name": "chicken breast", "quantity": 200, "unit": "g"},
                {"name": "rice", "quantity": 100, "unit": "g"},
                {"name": "soy sauce", "quantity": 1, "unit": "tbsp"},
            ],
            cooking_time=20,
            prep_time=5,
            difficulty=2,
            servings=2,
            nutrition={"calories": 550, "protein": 40, "carbs": 60, "fat": 12},
            storage_info={"fridge_days": 3, "freezer_days": 30},
            bulk_multiplier=2.0,
            tags=["dinner"],
        ),
    ]


@pytest.fixture
def seeded_catalog(session_factory, catalog, sample_recipes) -> RecipeCatalog:
    with transaction(session_factory, "seed recipes") as session:
        for recipe in sample_recipes:
            session.add(Recipe(**recipe.model_dump()))
    return catalog


@pytest.fixture
def eggs_and_pasta(inventory) -> InventoryStore:
    """Inventory holding six eggs and 500 g of pasta."""
    inventory.add_item("student-1", InventoryItemCreate(name="eggs", quantity=6, location="fridge"))
    inventory.add_item(
        "student-1", InventoryItemCreate(name="pasta", quantity=500, unit="g", location="pantry")
    )
    return inventory


@pytest.fixture
def aldi() -> StoreData:
    return make_store(
        id="aldi",
        name="Aldi",
        coordinates={"latitude": 52.4760, "longitude": -1.9170},
        price_level="budget",
        rating=4.0,
    )


@pytest.fixture
def tesco() -> StoreData:
    return make_store(
        id="tesco",
        name="Tesco",
        coordinates={"latitude": 52.4780, "longitude": -1.9140},
        price_level="mid",
        rating=4.0,
    )


@pytest.fixture
def recipe_factory():
    return make_recipe


@pytest.fixture
def store_factory():
    return make_store


@pytest.fixture
def home() -> Location:
    return HOME


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
