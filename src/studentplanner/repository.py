"""Persistence for generated plans and store data."""

from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from studentplanner.database import transaction
from studentplanner.errors import NotFoundError
from studentplanner.logging_config import get_logger
from studentplanner.models import MealPlan, Store
from studentplanner.schemas import Coordinates, StoreData, WeeklyMealPlan

logger = get_logger(__name__)


class PlanRepository:
    """Stores one weekly plan per (owner, week start)."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def replace(self, plan: WeeklyMealPlan) -> WeeklyMealPlan:
        """Delete any plan for the same week and insert this one, atomically."""
        data = plan.model_dump(mode="json")

        with transaction(self._session_factory, "save meal plan") as session:
            session.execute(
                delete(MealPlan).where(
                    MealPlan.owner_id == plan.owner_id,
                    MealPlan.week_start == plan.week_start,
                )
            )
            row = MealPlan(
                owner_id=plan.owner_id,
                week_start=plan.week_start,
                meals=data["meals"],
                shopping_list=data["shopping_list"],
                total_cost=plan.total_cost,
                nutrition_summary=data["nutrition_summary"],
                plan_metadata={
                    "bulk_cooking": data["bulk_cooking"],
                    "warnings": data["warnings"],
                },
            )
            session.add(row)
            session.flush()
            plan_id = row.id

        logger.info(f"Saved meal plan {plan_id} for {plan.owner_id}, week of {plan.week_start}")
        return plan.model_copy(update={"id": plan_id})

    def get(self, owner_id: str, week_start: date) -> WeeklyMealPlan:
        with transaction(self._session_factory, "read meal plan") as session:
            row = session.scalars(
                select(MealPlan).where(
                    MealPlan.owner_id == owner_id,
                    MealPlan.week_start == week_start,
                )
            ).first()
            if row is None:
                raise NotFoundError("meal plan", f"{owner_id}/{week_start.isoformat()}")
            return self._to_plan(row)

    def list_for_owner(self, owner_id: str) -> list[WeeklyMealPlan]:
        with transaction(self._session_factory, "list meal plans") as session:
            rows = session.scalars(
                select(MealPlan)
                .where(MealPlan.owner_id == owner_id)
                .order_by(MealPlan.week_start.desc())
            ).all()
            return [self._to_plan(row) for row in rows]

    def delete(self, owner_id: str, week_start: date) -> None:
        with transaction(self._session_factory, "delete meal plan") as session:
            result = session.execute(
                delete(MealPlan).where(
                    MealPlan.owner_id == owner_id,
                    MealPlan.week_start == week_start,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("meal plan", f"{owner_id}/{week_start.isoformat()}")

    @staticmethod
    def _to_plan(row: MealPlan) -> WeeklyMealPlan:
        metadata = row.plan_metadata or {}
        return WeeklyMealPlan.model_validate(
            {
                "id": row.id,
                "owner_id": row.owner_id,
                "week_start": row.week_start,
                "meals": row.meals,
                "shopping_list": row.shopping_list,
                "total_cost": row.total_cost,
                "nutrition_summary": row.nutrition_summary or {},
                "bulk_cooking": metadata.get("bulk_cooking", []),
                "warnings": metadata.get("warnings", []),
            }
        )


class StoreRepository:
    """Read access to active stores."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def list_active(self) -> list[StoreData]:
        with transaction(self._session_factory, "list stores") as session:
            rows = session.scalars(
                select(Store).where(Store.is_active.is_(True)).order_by(Store.name)
            ).all()
            return [self._to_data(row) for row in rows]

    def get_many(self, store_ids: list[str]) -> list[StoreData]:
        """Active stores among ``store_ids``. Unknown ids raise NotFoundError."""
        with transaction(self._session_factory, "read stores") as session:
            rows = session.scalars(
                select(Store).where(Store.id.in_(store_ids), Store.is_active.is_(True))
            ).all()
        found = {row.id: self._to_data(row) for row in rows}
        for store_id in store_ids:
            if store_id not in found:
                raise NotFoundError("store", store_id)
        return [found[store_id] for store_id in store_ids]

    def upsert(self, store: StoreData) -> StoreData:
        with transaction(self._session_factory, "save store") as session:
            row = session.get(Store, store.id) or Store(id=store.id)
            row.name = store.name
            row.latitude = store.coordinates.latitude if store.coordinates else None
            row.longitude = store.coordinates.longitude if store.coordinates else None
            row.opening_hours = store.opening_hours
            row.price_level = store.price_level
            row.rating = store.rating
            row.carries = store.carries
            row.item_prices = store.item_prices
            row.is_active = True
            session.add(row)
        return store

    @staticmethod
    def _to_data(row: Store) -> StoreData:
        coordinates = None
        if row.latitude is not None and row.longitude is not None:
            coordinates = Coordinates(latitude=row.latitude, longitude=row.longitude)
        return StoreData(
            id=row.id,
            name=row.name,
            coordinates=coordinates,
            opening_hours=row.opening_hours or {},
            price_level=row.price_level,
            rating=row.rating,
            carries=row.carries,
            item_prices=row.item_prices or {},
        )
