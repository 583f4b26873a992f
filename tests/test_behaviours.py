"""
tests/test_behaviours.py – Behaviour registry + each behaviour against a seeded DB.
"""
import pytest

from discovery.core.behaviours import (
    Behaviour,
    BehaviourRegistry,
    InvalidBehaviourConfig,
    QuickSnackConfig,
    UnknownBehaviour,
    quick_snack_categories,
    registry,
)
from discovery.core.ranking import FilterCriteria, RankingResult
from discovery.core.repository import ShopRepository

from conftest import CENTER_LAT, CENTER_LNG, DATELINE_LAT, DATELINE_WEST_LNG


@pytest.fixture
def repo(seeded_db):
    return ShopRepository(seeded_db)


def located(radius_km: float = 7.0) -> FilterCriteria:
    return FilterCriteria(user_lat=CENTER_LAT, user_lng=CENTER_LNG, radius_km=radius_km)


def ids(result: RankingResult) -> list[str]:
    return [c.id for c in result.cards]


# ── Registry ───────────────────────────────────────────────────────────────────

class TestRegistry:
    def test_every_behaviour_registered(self):
        registry.validate()
        assert registry.names() == [b.value for b in Behaviour]

    def test_validate_reports_missing(self):
        partial = BehaviourRegistry()

        @partial.register(Behaviour.STATIC)
        async def _static(req, repo):
            return RankingResult()

        with pytest.raises(RuntimeError, match="NEAR_ME"):
            partial.validate()

    def test_unknown_name_raises(self):
        with pytest.raises(UnknownBehaviour):
            registry.resolve("TRENDING")

    def test_unknown_is_not_silently_near_me(self):
        with pytest.raises(LookupError):
            registry.parse_config("near_me", {})

    def test_config_camel_case(self):
        config = registry.parse_config("QUICK_SNACK", {"chips": ["Snacks"], "minRating": 4, "maxDistanceKm": 3})
        assert isinstance(config, QuickSnackConfig)
        assert config.chips == ["Snacks"]
        assert config.min_rating == 4
        assert config.max_distance_km == 3

    @pytest.mark.parametrize("name,raw", [
        ("CUSTOM_QUERY", {}),
        ("QUICK_SNACK", {"minRating": 9}),
        ("NEAR_ME", {"maxDistanceKm": -1}),
    ])
    def test_invalid_config(self, name, raw):
        with pytest.raises(InvalidBehaviourConfig):
            registry.parse_config(name, raw)

    def test_invalid_config_is_value_error(self):
        assert issubclass(InvalidBehaviourConfig, ValueError)
        assert issubclass(UnknownBehaviour, LookupError)


# ── Dispatch ───────────────────────────────────────────────────────────────────

class TestDispatch:
    @pytest.mark.asyncio
    async def test_near_me_sorted_by_distance(self, repo):
        result = await registry.dispatch("NEAR_ME", located(10), {}, repo)
        assert ids(result) == ["shop-marina", "shop-egmore", "shop-adyar"]
        distances = [c.distance_km for c in result.cards]
        assert distances == sorted(distances)
        assert result.search_radius == 10

    @pytest.mark.asyncio
    async def test_near_me_across_antimeridian(self, repo, dateline_shop):
        criteria = FilterCriteria(user_lat=DATELINE_LAT, user_lng=DATELINE_WEST_LNG, radius_km=7)
        result = await registry.dispatch("NEAR_ME", criteria, {}, repo)
        assert ids(result) == [dateline_shop]
        assert result.cards[0].distance_km == pytest.approx(2.13, abs=0.01)

    @pytest.mark.asyncio
    async def test_near_me_without_location_lists_active_shops(self, repo):
        result = await registry.dispatch("NEAR_ME", FilterCriteria(), {}, repo)
        assert "shop-closed" not in ids(result)
        assert "shop-cloud" in ids(result)

    @pytest.mark.asyncio
    async def test_category_based(self, repo):
        result = await registry.dispatch("CATEGORY_BASED", located(7), {}, repo, main_category_id="cat-rest")
        assert sorted(ids(result)) == ["shop-adyar", "shop-marina"]

    @pytest.mark.asyncio
    async def test_category_from_config(self, repo):
        result = await registry.dispatch("CATEGORY_BASED", FilterCriteria(), {"mainCategoryId": "cat-bakery"}, repo)
        assert ids(result) == ["shop-egmore"]

    @pytest.mark.asyncio
    async def test_category_missing_id_is_empty(self, repo):
        result = await registry.dispatch("CATEGORY_BASED", located(7), {}, repo)
        assert result.cards == []

    @pytest.mark.asyncio
    async def test_quick_snack_narrows_menus(self, repo):
        result = await registry.dispatch("QUICK_SNACK", located(7), {"chips": ["Snacks", "Beverages"]}, repo)
        assert ids(result) == ["shop-marina", "shop-egmore", "shop-adyar"]
        marina = result.cards[0]
        assert marina.menu_categories == ["Beverages"]

    @pytest.mark.asyncio
    async def test_quick_snack_chip_overrides_config(self, repo):
        result = await registry.dispatch(
            "QUICK_SNACK", located(7), {"chips": ["Snacks", "Beverages"]}, repo, chip="Snacks",
        )
        assert ids(result) == ["shop-egmore", "shop-adyar"]

    @pytest.mark.asyncio
    async def test_quick_snack_min_rating(self, repo):
        result = await registry.dispatch("QUICK_SNACK", located(7), {"chips": ["Snacks"], "minRating": 3.5}, repo)
        assert ids(result) == ["shop-egmore"]

    @pytest.mark.asyncio
    async def test_custom_query(self, repo):
        result = await registry.dispatch("CUSTOM_QUERY", FilterCriteria(), {"query": "dosa"}, repo)
        assert sorted(ids(result)) == ["shop-cloud", "shop-marina", "shop-vellore"]

    @pytest.mark.asyncio
    async def test_custom_query_respects_radius(self, repo):
        result = await registry.dispatch("CUSTOM_QUERY", located(7), {"query": "dosa"}, repo)
        assert ids(result) == ["shop-marina"]

    @pytest.mark.asyncio
    async def test_static_is_empty(self, repo):
        result = await registry.dispatch("STATIC", located(7), None, repo)
        assert result.cards == []
        assert result.search_radius == 7

    @pytest.mark.asyncio
    async def test_unknown_behaviour(self, repo):
        with pytest.raises(UnknownBehaviour):
            await registry.dispatch("TRENDING", located(7), {}, repo)


# ── Quick snack categories ─────────────────────────────────────────────────────

class TestQuickSnackCategories:
    @pytest.mark.asyncio
    async def test_counts_within_radius(self, repo):
        config = QuickSnackConfig(chips=["Snacks", "Beverages"])
        categories = await quick_snack_categories(repo, located(5), config)
        assert [(c.name, c.item_count) for c in categories] == [("Beverages", 1), ("Snacks", 1)]

    @pytest.mark.asyncio
    async def test_counts_without_location(self, repo):
        config = QuickSnackConfig(chips=["Snacks"])
        categories = await quick_snack_categories(repo, FilterCriteria(), config)
        assert [(c.name, c.item_count) for c in categories] == [("Snacks", 3)]
