"""Tests for the filter composition engine"""
import pytest
from bson import ObjectId

from commerce.core.errors import RPCTimeoutError, ValidationError
from commerce.messaging.message_types import RPCType
from commerce.services.filters import (
    FilterByCategories,
    FilterByColor,
    FilterByPrice,
    FilterBySize,
    FilterByVariantOptions,
    FilterKind,
    FilterSource,
    create_filters_from_request,
    create_variant_options,
    entity_field_filter_factory,
    rpc_variant_filter_factory,
)


class TestLocalFilters:

    @pytest.mark.asyncio
    async def test_categories_predicate(self):
        predicate = await FilterByCategories(["shirts", "summer", "shirts"]).build_predicate()
        assert predicate == {"categories": {"$in": ["shirts", "summer"]}}

    @pytest.mark.asyncio
    async def test_single_category_is_accepted(self):
        predicate = await FilterByCategories("shirts").build_predicate()
        assert predicate == {"categories": {"$in": ["shirts"]}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price_range,expected", [
        ("10-50", {"$gte": 10.0, "$lte": 50.0}),
        ("10-", {"$gte": 10.0}),
        ("-50", {"$lte": 50.0}),
        ([10, 50], {"$gte": 10.0, "$lte": 50.0}),
        ([None, "25.5"], {"$lte": 25.5}),
    ])
    async def test_price_predicate(self, price_range, expected):
        assert await FilterByPrice(price_range).build_predicate() == {"price": expected}

    @pytest.mark.parametrize("price_range", ["cheap", "10", "-", "50-10", "1-2-3", 42, [1, 2, 3], ["a", "b"]])
    def test_invalid_price_range(self, price_range):
        with pytest.raises(ValidationError):
            FilterByPrice(price_range)

    def test_local_filters_do_not_extend_variant_options(self):
        with pytest.raises(TypeError):
            FilterByCategories(["shirts"]).extend_filter_options({})


class TestVariantAttributeFilters:

    def test_color_and_size_are_remote(self):
        assert FilterByColor(["red"]).source is FilterSource.REMOTE
        assert FilterBySize(["M"]).source is FilterSource.REMOTE
        assert FilterByCategories(["shirts"]).source is FilterSource.LOCAL

    def test_extend_filter_options_merges_as_union(self):
        options = {"color": ["red"]}
        FilterByColor(["blue", "red"]).extend_filter_options(options)
        FilterBySize("M").extend_filter_options(options)

        assert options == {"color": ["red", "blue"], "size": ["M"]}

    @pytest.mark.asyncio
    async def test_remote_filter_has_no_predicate_of_its_own(self):
        with pytest.raises(TypeError):
            await FilterByColor(["red"]).build_predicate()


class TestFactories:

    def test_entity_field_factory(self):
        assert isinstance(entity_field_filter_factory("category", ["shirts"]), FilterByCategories)
        assert isinstance(entity_field_filter_factory("priceRange", "1-2"), FilterByPrice)
        assert entity_field_filter_factory("color", ["red"]) is None

    def test_rpc_variant_factory(self):
        assert isinstance(rpc_variant_filter_factory("color", ["red"]), FilterByColor)
        assert isinstance(rpc_variant_filter_factory("size", ["M"]), FilterBySize)
        assert rpc_variant_filter_factory("category", ["shirts"]) is None

    def test_empty_criteria_yield_no_filters(self):
        assert create_filters_from_request({}, entity_field_filter_factory) == []
        assert create_filters_from_request({}, rpc_variant_filter_factory) == []

    def test_empty_values_and_unknown_names_are_skipped(self):
        criteria = {"category": [], "priceRange": "", "color": None, "brand": ["acme"], "size": ["M"]}

        assert create_filters_from_request(criteria, entity_field_filter_factory) == []
        filters = create_filters_from_request(criteria, rpc_variant_filter_factory)
        assert [f.kind for f in filters] == [FilterKind.VARIANT_SIZE]

    def test_create_variant_options(self):
        filters = [FilterByCategories(["shirts"]), FilterByColor(["red"]), FilterBySize(["M", "L"])]
        assert create_variant_options(filters) == {"color": ["red"], "size": ["M", "L"]}

    def test_create_variant_options_without_remote_filters(self):
        assert create_variant_options([]) is None
        assert create_variant_options([FilterByCategories(["shirts"])]) is None


class TestFilterByVariantOptions:

    @pytest.mark.asyncio
    async def test_single_rpc_resolves_product_ids(self, mock_gateway):
        matched = "507f1f77bcf86cd799439011"
        mock_gateway.call.return_value = [matched, "legacy-id"]
        options = {"color": ["red"], "size": ["M"]}

        predicate = await FilterByVariantOptions(options, mock_gateway, timeout=2).build_predicate()

        assert predicate == {"_id": {"$in": [ObjectId(matched), "legacy-id"]}}
        mock_gateway.call.assert_awaited_once()
        destination, request, timeout = mock_gateway.call.call_args.args
        assert destination == "INVENTORY_RPC"
        assert request.kind is RPCType.GET_PRODUCT_ID_LIST_BY_VARIANT_OPTIONS
        assert request.data == options
        assert timeout == 2

    @pytest.mark.asyncio
    async def test_no_match_yields_predicate_matching_nothing(self, mock_gateway):
        mock_gateway.call.return_value = None
        predicate = await FilterByVariantOptions({"color": ["teal"]}, mock_gateway).build_predicate()
        assert predicate == {"_id": {"$in": []}}

    @pytest.mark.asyncio
    async def test_timeout_propagates(self, mock_gateway):
        mock_gateway.call.side_effect = RPCTimeoutError("No reply from INVENTORY_RPC")
        with pytest.raises(RPCTimeoutError):
            await FilterByVariantOptions({"color": ["red"]}, mock_gateway).build_predicate()
