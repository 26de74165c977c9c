"""Per-owner inventory of perishable items."""

from collections.abc import Callable
from datetime import date

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session, sessionmaker

from studentplanner.database import transaction
from studentplanner.errors import InvalidQuantityError, NotFoundError
from studentplanner.inventory.categorize import categorize_item
from studentplanner.logging_config import get_logger
from studentplanner.models import InventoryItem
from studentplanner.schemas import (
    ExpiryAlert,
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    InventoryStatus,
)

logger = get_logger(__name__)


class InventoryStore:
    """
    CRUD and status queries over a user's fridge, pantry and freezer.

    Every query is scoped by owner. Quantity decrements happen as a single
    conditional UPDATE/DELETE in the database, never as read-modify-write.
    """

    EXPIRING_SOON_DAYS = 3
    ALERT_WINDOW_DAYS = 7
    LOW_STOCK_QUANTITY = 1.0
    CONSUME_ATTEMPTS = 3

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        today: Callable[[], date] = date.today,
    ):
        self._session_factory = session_factory
        self._today = today

    # =========================================================================
    # Create / read
    # =========================================================================

    def add_item(self, owner_id: str, item: InventoryItemCreate) -> InventoryItemRead:
        """Add an item, inferring its category from the name when omitted."""
        if item.quantity < 0:
            raise InvalidQuantityError(f"Quantity must be non-negative, got {item.quantity}")

        values = item.model_dump()
        values["category"] = item.category or categorize_item(item.name)

        with transaction(self._session_factory, "add inventory item") as session:
            row = InventoryItem(owner_id=owner_id, **values)
            session.add(row)
            session.flush()
            result = InventoryItemRead.model_validate(row)

        logger.info(f"Added {result.name} ({result.category}) to {result.location} for {owner_id}")
        return result

    def get_item(self, owner_id: str, item_id: str) -> InventoryItemRead:
        with transaction(self._session_factory, "read inventory item") as session:
            row = self._get_row(session, owner_id, item_id)
            return InventoryItemRead.model_validate(row)

    def list_items(
        self,
        owner_id: str,
        location: str | None = None,
        category: str | None = None,
    ) -> list[InventoryItemRead]:
        """Items with a positive quantity, soonest expiry first."""
        query = select(InventoryItem).where(
            InventoryItem.owner_id == owner_id,
            InventoryItem.quantity > 0,
        )
        if location:
            query = query.where(InventoryItem.location == location)
        if category:
            query = query.where(InventoryItem.category == category)
        query = query.order_by(
            InventoryItem.expiry_date.is_(None),
            InventoryItem.expiry_date,
            InventoryItem.name,
        )

        with transaction(self._session_factory, "list inventory") as session:
            rows = session.scalars(query).all()
            return [InventoryItemRead.model_validate(row) for row in rows]

    def search(self, owner_id: str, query: str) -> list[InventoryItemRead]:
        """Case-insensitive substring search over item name and category."""
        pattern = f"%{query.lower()}%"
        stmt = (
            select(InventoryItem)
            .where(
                InventoryItem.owner_id == owner_id,
                InventoryItem.quantity > 0,
                or_(
                    func.lower(InventoryItem.name).like(pattern),
                    func.lower(InventoryItem.category).like(pattern),
                ),
            )
            .order_by(InventoryItem.name)
        )
        with transaction(self._session_factory, "search inventory") as session:
            return [InventoryItemRead.model_validate(row) for row in session.scalars(stmt)]

    def available_ingredients(self, owner_id: str) -> list[str]:
        """Names of everything the owner currently has in stock."""
        return [item.name for item in self.list_items(owner_id)]

    def total_value(self, owner_id: str) -> float:
        """Sum of cost x quantity over items with a known cost."""
        stmt = select(func.coalesce(func.sum(InventoryItem.cost * InventoryItem.quantity), 0.0)).where(
            InventoryItem.owner_id == owner_id,
            InventoryItem.cost.is_not(None),
        )
        with transaction(self._session_factory, "value inventory") as session:
            return round(float(session.scalar(stmt) or 0.0), 2)

    # =========================================================================
    # Update / delete
    # =========================================================================

    def update_item(
        self, owner_id: str, item_id: str, updates: InventoryItemUpdate
    ) -> InventoryItemRead:
        changes = updates.model_dump(exclude_unset=True)
        if changes.get("quantity") is not None and changes["quantity"] < 0:
            raise InvalidQuantityError(f"Quantity must be non-negative, got {changes['quantity']}")

        with transaction(self._session_factory, "update inventory item") as session:
            row = self._get_row(session, owner_id, item_id)
            for field, value in changes.items():
                setattr(row, field, value)
            if "name" in changes and "category" not in changes:
                row.category = categorize_item(row.name)
            session.flush()
            return InventoryItemRead.model_validate(row)

    def delete_item(self, owner_id: str, item_id: str) -> None:
        with transaction(self._session_factory, "delete inventory item") as session:
            result = session.execute(
                delete(InventoryItem).where(
                    InventoryItem.id == item_id,
                    InventoryItem.owner_id == owner_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("inventory item", item_id)
        logger.info(f"Deleted inventory item {item_id} for {owner_id}")

    def consume(self, owner_id: str, item_id: str, quantity: float) -> InventoryItemRead | None:
        """
        Use up part of an item.

        Returns the updated item, or None once the remaining quantity reaches
        zero and the row has been removed.

        Raises:
            InvalidQuantityError: quantity is negative.
            NotFoundError: the item does not exist for this owner.
        """
        if quantity < 0:
            raise InvalidQuantityError(f"Cannot consume a negative quantity: {quantity}")

        owned = (InventoryItem.id == item_id, InventoryItem.owner_id == owner_id)

        for _ in range(self.CONSUME_ATTEMPTS):
            with transaction(self._session_factory, "consume inventory item") as session:
                decremented = session.execute(
                    update(InventoryItem)
                    .where(*owned, InventoryItem.quantity > quantity)
                    .values(quantity=InventoryItem.quantity - quantity)
                    .execution_options(synchronize_session=False)
                )
                if decremented.rowcount == 1:
                    row = session.scalars(select(InventoryItem).where(*owned)).one()
                    logger.debug(f"Consumed {quantity} of {row.name}, {row.quantity} left")
                    return InventoryItemRead.model_validate(row)

                removed = session.execute(
                    delete(InventoryItem)
                    .where(*owned, InventoryItem.quantity <= quantity)
                    .execution_options(synchronize_session=False)
                )
                if removed.rowcount == 1:
                    logger.info(f"Inventory item {item_id} used up and removed")
                    return None

                exists = session.scalar(select(InventoryItem.id).where(*owned))
                if exists is None:
                    raise NotFoundError("inventory item", item_id)

            # Row changed between the two statements; try again.
            logger.debug(f"Concurrent change on inventory item {item_id}, retrying consume")

        raise NotFoundError("inventory item", item_id)

    def restock(self, owner_id: str, items: list[InventoryItemCreate]) -> list[InventoryItemRead]:
        """
        Merge purchased items into the inventory.

        Items matching an existing row by name and location add to its
        quantity; everything else is inserted.
        """
        results: list[InventoryItemRead] = []
        with transaction(self._session_factory, "restock inventory") as session:
            for item in items:
                existing = session.scalars(
                    select(InventoryItem).where(
                        InventoryItem.owner_id == owner_id,
                        func.lower(InventoryItem.name) == item.name.lower(),
                        InventoryItem.location == item.location,
                    )
                ).first()

                if existing is None:
                    values = item.model_dump()
                    values["category"] = item.category or categorize_item(item.name)
                    existing = InventoryItem(owner_id=owner_id, **values)
                    session.add(existing)
                else:
                    existing.quantity += item.quantity
                    if item.expiry_date:
                        existing.expiry_date = item.expiry_date
                    if item.purchase_date:
                        existing.purchase_date = item.purchase_date
                    if item.cost is not None:
                        existing.cost = item.cost
                    if item.store:
                        existing.store = item.store

                session.flush()
                results.append(InventoryItemRead.model_validate(existing))

        logger.info(f"Restocked {len(results)} items for {owner_id}")
        return results

    # =========================================================================
    # Status
    # =========================================================================

    def compute_status(self, owner_id: str) -> InventoryStatus:
        """Counts, items expiring within three days and low-stock items."""
        items = self._all_items(owner_id)
        today = self._today()

        expiring_soon = [
            item
            for item in items
            if item.expiry_date is not None
            and 0 <= (item.expiry_date - today).days <= self.EXPIRING_SOON_DAYS
        ]
        low_stock = [item for item in items if item.quantity <= self.LOW_STOCK_QUANTITY]

        category_counts: dict[str, int] = {}
        for item in items:
            category_counts[item.category] = category_counts.get(item.category, 0) + 1

        return InventoryStatus(
            total_items=len(items),
            expiring_soon=expiring_soon,
            low_stock=low_stock,
            category_counts=category_counts,
        )

    def expiry_alerts(self, owner_id: str) -> list[ExpiryAlert]:
        today = self._today()
        alerts = []
        for item in self._all_items(owner_id):
            if item.expiry_date is None:
                continue
            days = (item.expiry_date - today).days
            if not 0 <= days <= self.ALERT_WINDOW_DAYS:
                continue
            if days <= 1:
                urgency = "high"
            elif days <= 3:
                urgency = "medium"
            else:
                urgency = "low"
            alerts.append(ExpiryAlert(item=item, days_until_expiry=days, urgency=urgency))

        alerts.sort(key=lambda a: a.days_until_expiry)
        return alerts

    # =========================================================================
    # Helpers
    # =========================================================================

    def _all_items(self, owner_id: str) -> list[InventoryItemRead]:
        with transaction(self._session_factory, "read inventory") as session:
            rows = session.scalars(
                select(InventoryItem).where(InventoryItem.owner_id == owner_id)
            ).all()
            return [InventoryItemRead.model_validate(row) for row in rows]

    @staticmethod
    def _get_row(session: Session, owner_id: str, item_id: str) -> InventoryItem:
        row = session.scalars(
            select(InventoryItem).where(
                InventoryItem.id == item_id,
                InventoryItem.owner_id == owner_id,
            )
        ).first()
        if row is None:
            raise NotFoundError("inventory item", item_id)
        return row
