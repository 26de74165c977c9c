"""Shopping list allocation across stores with travel-cost awareness."""

from dataclasses import dataclass, field
from itertools import combinations

from studentplanner.logging_config import get_logger
from studentplanner.plan.shopping_list import estimate_cost
from studentplanner.recipes.matching import IngredientMatcher, normalize_ingredient
from studentplanner.schemas import (
    ItemAllocation,
    Location,
    OptimizedShoppingList,
    PlanWarning,
    ShoppingConstraints,
    ShoppingItem,
    StoreData,
    StoreVisit,
    TravelConditions,
    TravelMode,
)
from studentplanner.travel.estimator import TravelEstimator, haversine_km

logger = get_logger(__name__)


@dataclass
class Offer:
    """A store's price for one shopping item."""

    store: StoreData
    price: float


@dataclass
class StoreSetEvaluation:
    """One candidate set of stores and the best allocation within it."""

    stores: tuple[StoreData, ...]
    allocations: dict[int, Offer] = field(default_factory=dict)
    goods_cost: float = 0.0
    travel_penalty: float = 0.0

    @property
    def coverage(self) -> int:
        return len(self.allocations)

    @property
    def objective(self) -> float:
        return self.goods_cost + self.travel_penalty

    @property
    def mean_rating(self) -> float:
        return sum(store.rating for store in self.stores) / len(self.stores)


class ShoppingListOptimizer:
    """
    Allocates shopping items to stores, balancing:
    - Goods cost (exact store prices, else baseline x price level)
    - Travel penalty for every store beyond the first
    - Coverage of essential items
    - An optional budget ceiling

    The search is bounded: only the K cheapest stores by basket cost (plus a
    few added to cover items none of them stock, up to MAX_SEARCH_STORES)
    are combined, together with the naive cheapest-store-per-item set.
    """

    DEFAULT_CANDIDATE_STORES = 3
    MAX_SEARCH_STORES = 5

    def __init__(
        self,
        travel: TravelEstimator,
        max_candidate_stores: int = DEFAULT_CANDIDATE_STORES,
        travel_time_value: float = 0.10,
        dwell_minutes: int = 15,
        default_home: Location | None = None,
        default_mode: TravelMode = "walk",
    ):
        self.travel = travel
        self.max_candidate_stores = max(1, min(max_candidate_stores, self.MAX_SEARCH_STORES))
        self.travel_time_value = travel_time_value
        self.dwell_minutes = dwell_minutes
        self.default_home = default_home
        self.default_mode = default_mode

    async def optimize(
        self,
        items: list[ShoppingItem],
        stores: list[StoreData],
        constraints: ShoppingConstraints | None = None,
    ) -> OptimizedShoppingList:
        """
        Allocate ``items`` across ``stores``.

        Items no store stocks are returned as unallocated, with a warning for
        each essential one. Exceeding the budget is reported as a warning,
        never as an error.
        """
        constraints = constraints or ShoppingConstraints()
        home = constraints.home or self.default_home or Location(name="home")
        mode = constraints.travel_mode or self.default_mode
        conditions = constraints.travel_conditions or TravelConditions()

        wanted = [item for item in items if item.quantity > 0]
        offers = {index: self._offers(item, stores) for index, item in enumerate(wanted)}
        unallocated = [wanted[i] for i, item_offers in offers.items() if not item_offers]
        offers = {i: item_offers for i, item_offers in offers.items() if item_offers}

        warnings = [
            PlanWarning(
                code="unallocated_item",
                message=f"No store stocks {item.name}",
                item=item.name,
            )
            for item in unallocated
            if item.priority == "essential"
        ]

        if not offers:
            logger.info(f"Nothing to allocate: {len(unallocated)} items have no offers")
            return OptimizedShoppingList(unallocated=unallocated, warnings=warnings)

        candidates = self._candidate_stores(offers, stores)
        naive = self._naive_stores(offers)
        searched = {store.id: store for store in [*candidates, *naive]}
        penalties = await self._store_penalties(home, list(searched.values()), mode, conditions)

        evaluations = self._evaluate_subsets(candidates, naive, offers, penalties)
        chosen, over_budget = self._select(evaluations, constraints.max_budget)

        if over_budget:
            warnings.append(
                PlanWarning(
                    code="over_budget",
                    message=(
                        f"Cheapest allocation costs {chosen.goods_cost:.2f} GBP, "
                        f"above the {constraints.max_budget:.2f} GBP budget"
                    ),
                )
            )

        # Items only outside the chosen set stay unallocated
        for index in offers:
            if index not in chosen.allocations:
                item = wanted[index]
                unallocated.append(item)
                if item.priority == "essential":
                    warnings.append(
                        PlanWarning(
                            code="unallocated_item",
                            message=f"{item.name} is not sold at the selected stores",
                            item=item.name,
                        )
                    )

        visits, total_time = await self._plan_route(home, chosen, wanted, mode, conditions)
        allocations = [
            ItemAllocation(item=wanted[index], store_id=offer.store.id, price=offer.price)
            for index, offer in sorted(chosen.allocations.items())
        ]

        logger.info(
            f"Allocated {len(allocations)} items across {len(visits)} stores: "
            f"{chosen.goods_cost:.2f} GBP goods, {chosen.travel_penalty:.2f} GBP travel penalty"
        )

        return OptimizedShoppingList(
            allocations=allocations,
            visit_order=visits,
            total_cost=round(chosen.goods_cost, 2),
            travel_penalty=round(chosen.travel_penalty, 2),
            total_time=total_time,
            unallocated=unallocated,
            warnings=warnings,
        )

    # =========================================================================
    # Offers and candidate stores
    # =========================================================================

    def _offers(self, item: ShoppingItem, stores: list[StoreData]) -> list[Offer]:
        """Every store stocking ``item`` and its price, cheapest first."""
        offers = []
        for store in stores:
            if store.carries is not None and not IngredientMatcher(store.carries).has(item.name):
                continue
            offers.append(Offer(store=store, price=self._price(item, store)))
        offers.sort(key=lambda o: (o.price, -o.store.rating, o.store.id))
        return offers

    @staticmethod
    def _price(item: ShoppingItem, store: StoreData) -> float:
        exact = {normalize_ingredient(name): price for name, price in store.item_prices.items()}
        key = normalize_ingredient(item.name)
        if key in exact:
            return round(exact[key], 2)
        return estimate_cost(item.name, item.quantity, item.unit, item.category, store.price_level)

    def _candidate_stores(self, offers: dict[int, list[Offer]], stores: list[StoreData]) -> list[StoreData]:
        """K cheapest stores by basket cost, plus stores covering their gaps."""
        by_id = {store.id: store for store in stores}
        worst = {index: item_offers[-1].price for index, item_offers in offers.items()}

        basket: dict[str, float] = {}
        for store in stores:
            total = 0.0
            for index, item_offers in offers.items():
                price = next((o.price for o in item_offers if o.store.id == store.id), worst[index])
                total += price
            basket[store.id] = total

        ranked = sorted(stores, key=lambda s: (basket[s.id], -s.rating, s.id))
        candidates = ranked[: self.max_candidate_stores]
        chosen_ids = {store.id for store in candidates}

        for index, item_offers in offers.items():
            if len(candidates) >= self.MAX_SEARCH_STORES:
                break
            if any(o.store.id in chosen_ids for o in item_offers):
                continue
            cover = by_id[item_offers[0].store.id]
            candidates.append(cover)
            chosen_ids.add(cover.id)
            logger.debug(f"Added {cover.name} to cover item #{index}")

        return candidates

    @staticmethod
    def _naive_stores(offers: dict[int, list[Offer]]) -> list[StoreData]:
        """Stores picked by taking the cheapest offer for every item."""
        naive: dict[str, StoreData] = {}
        for item_offers in offers.values():
            store = item_offers[0].store
            naive[store.id] = store
        return list(naive.values())

    async def _store_penalties(
        self,
        home: Location,
        stores: list[StoreData],
        mode: TravelMode,
        conditions: TravelConditions,
    ) -> dict[str, float]:
        """Money value of travelling from home to each store."""
        penalties = {}
        for store in stores:
            route = await self.travel.get_route(home, store.location, mode, conditions)
            penalties[store.id] = route.duration_min * self.travel_time_value + route.cost
        return penalties

    # =========================================================================
    # Search
    # =========================================================================

    def _evaluate_subsets(
        self,
        candidates: list[StoreData],
        naive: list[StoreData],
        offers: dict[int, list[Offer]],
        penalties: dict[str, float],
    ) -> list[StoreSetEvaluation]:
        store_sets: dict[frozenset[str], tuple[StoreData, ...]] = {}
        for size in range(1, len(candidates) + 1):
            for subset in combinations(candidates, size):
                store_sets.setdefault(frozenset(s.id for s in subset), subset)
        store_sets.setdefault(frozenset(s.id for s in naive), tuple(naive))

        return [self._evaluate(subset, offers, penalties) for subset in store_sets.values()]

    @staticmethod
    def _evaluate(
        subset: tuple[StoreData, ...],
        offers: dict[int, list[Offer]],
        penalties: dict[str, float],
    ) -> StoreSetEvaluation:
        ids = {store.id for store in subset}
        evaluation = StoreSetEvaluation(stores=subset)

        for index, item_offers in offers.items():
            # Offers are sorted by price then rating, so the first in the set wins ties
            offer = next((o for o in item_offers if o.store.id in ids), None)
            if offer is not None:
                evaluation.allocations[index] = offer
                evaluation.goods_cost += offer.price

        used = {offer.store.id for offer in evaluation.allocations.values()}
        evaluation.stores = tuple(store for store in subset if store.id in used) or subset
        store_penalties = [penalties[store.id] for store in evaluation.stores]
        # Reaching the nearest store is the cost of shopping at all
        evaluation.travel_penalty = sum(store_penalties) - min(store_penalties)
        evaluation.goods_cost = round(evaluation.goods_cost, 2)
        return evaluation

    @staticmethod
    def _select(
        evaluations: list[StoreSetEvaluation],
        max_budget: float | None,
    ) -> tuple[StoreSetEvaluation, bool]:
        """Best evaluation and whether it breaks the budget."""
        best_coverage = max(e.coverage for e in evaluations)
        pool = [e for e in evaluations if e.coverage == best_coverage]

        def rank(e: StoreSetEvaluation) -> tuple:
            return (round(e.objective, 6), len(e.stores), -e.mean_rating, sorted(s.id for s in e.stores))

        if max_budget is None:
            return min(pool, key=rank), False

        affordable = [e for e in pool if e.goods_cost <= max_budget + 1e-9]
        if affordable:
            return min(affordable, key=rank), False
        return min(pool, key=lambda e: (e.goods_cost, rank(e))), True

    # =========================================================================
    # Route
    # =========================================================================

    async def _plan_route(
        self,
        home: Location,
        chosen: StoreSetEvaluation,
        items: list[ShoppingItem],
        mode: TravelMode,
        conditions: TravelConditions,
    ) -> tuple[list[StoreVisit], int]:
        """Nearest-neighbour visit order and total trip time in minutes."""
        remaining = list(chosen.stores)
        ordered: list[StoreData] = []
        current = home
        while remaining:
            nearest = min(remaining, key=lambda s: (self._distance(current, s.location), s.id))
            ordered.append(nearest)
            remaining.remove(nearest)
            current = nearest.location

        visits = []
        total_time = 0
        current = home
        for store in ordered:
            leg = await self.travel.get_route(current, store.location, mode, conditions)
            store_items = [
                (index, offer)
                for index, offer in sorted(chosen.allocations.items())
                if offer.store.id == store.id
            ]
            visits.append(
                StoreVisit(
                    store_id=store.id,
                    store_name=store.name,
                    items=[items[index].name for index, _ in store_items],
                    subtotal=round(sum(offer.price for _, offer in store_items), 2),
                    travel_minutes=leg.duration_min,
                )
            )
            total_time += leg.duration_min + self.dwell_minutes
            current = store.location

        if ordered:
            back = await self.travel.get_route(current, home, mode, conditions)
            total_time += back.duration_min

        return visits, total_time

    @staticmethod
    def _distance(origin: Location, destination: Location) -> float:
        distance = haversine_km(origin, destination)
        return TravelEstimator.FALLBACK_DISTANCE_KM if distance is None else distance
