"""Tests for optimal pairing of unordered collections.

Test coverage:
- Hungarian assignment on square and rectangular matrices
- Similarity-driven pairing of objects and primitives
- Unmatched index reporting
"""

import pytest

from extract_evo.core.comparator_spec import Leaf, Nested, to_spec
from extract_evo.core.comparators import exact, within
from extract_evo.core.matching import StructuralMatcher, hungarian, match_arrays


class TestHungarian:
    """Tests for the assignment solver."""

    def test_square_matrix_optimum(self):
        """The minimum-cost assignment is found, not the greedy one."""
        cost = [[4, 1, 3], [2, 0, 5], [3, 2, 2]]
        assert hungarian(cost) == [(0, 1), (1, 0), (2, 2)]

    def test_anti_diagonal(self):
        """Off-diagonal optimum is preferred over identity order."""
        assert hungarian([[1, 0], [0, 1]]) == [(0, 1), (1, 0)]

    def test_more_columns_than_rows(self):
        """Every row is assigned; one column stays free."""
        cost = [[0.9, 0.1, 0.5], [0.2, 0.8, 0.3]]
        assert hungarian(cost) == [(0, 1), (1, 0)]

    def test_more_rows_than_columns(self):
        """The matrix is solved over the smaller dimension."""
        cost = [[0.5], [0.1], [0.9]]
        assert hungarian(cost) == [(1, 0)]

    def test_empty(self):
        """Empty inputs produce no pairs."""
        assert hungarian([]) == []
        assert hungarian([[], []]) == []

    def test_input_left_untouched(self):
        """The cost matrix is not padded or modified in place."""
        cost = [[0.9, 0.1, 0.5], [0.2, 0.8, 0.3]]
        hungarian(cost)
        assert cost == [[0.9, 0.1, 0.5], [0.2, 0.8, 0.3]]

    def test_ties_keep_identity_order(self):
        """Equal costs keep the natural order."""
        assert hungarian([[0, 0], [0, 0]]) == [(0, 0), (1, 1)]


class TestStructuralMatcher:
    """Tests for similarity-driven pairing."""

    @pytest.mark.asyncio
    async def test_closest_value_pairing(self):
        """Tolerance similarity pairs each premium with its closest value."""
        expected = [{"premium": 100}, {"premium": 200}]
        actual = [{"premium": 210}, {"premium": 95}]
        result = await match_arrays(expected, actual, Nested({"premium": Leaf(within(0.1))}))

        assert result.assignments == [(0, 1), (1, 0)]
        assert result.unmatched_expected == []

    @pytest.mark.asyncio
    async def test_extra_actual_items_reported(self):
        """Surplus actual items are unmatched, expected items all paired."""
        result = await match_arrays([{"id": 1}], [{"id": 99}, {"id": 1}], to_spec({"id": exact}))

        assert result.assignments == [(0, 1)]
        assert result.unmatched_actual == [0]

    @pytest.mark.asyncio
    async def test_missing_expected_items_reported(self):
        """Expected items without a partner are listed."""
        result = await match_arrays([{"id": 1}, {"id": 2}], [{"id": 2}], to_spec({"id": exact}))

        assert result.assignments == [(1, 0)]
        assert result.unmatched_expected == [0]

    @pytest.mark.asyncio
    async def test_empty_sides(self):
        """An empty side leaves everything on the other side unmatched."""
        result = await match_arrays([], [1, 2])
        assert result.unmatched_actual == [0, 1]

        result = await match_arrays([1, 2], [])
        assert result.unmatched_expected == [0, 1]

    @pytest.mark.asyncio
    async def test_objects_without_comparators_are_indifferent(self):
        """Objects with no configured fields have similarity 1.0."""
        matcher = StructuralMatcher(Nested())
        assert await matcher.similarity({"a": 1}, {"a": 2}) == 1.0

    @pytest.mark.asyncio
    async def test_object_similarity_averages_configured_fields(self):
        """Only configured fields contribute to the average."""
        matcher = StructuralMatcher(to_spec({"a": exact, "b": exact}))
        assert await matcher.similarity({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 0, "c": 0}) == 0.5

    @pytest.mark.asyncio
    async def test_nested_arrays_penalize_length_mismatch(self):
        """Array similarity is normalized by the longer length."""
        matcher = StructuralMatcher(item_comparator=exact)
        assert await matcher.similarity([1, 2], [1]) == 0.5
        assert await matcher.similarity([], []) == 1.0
        assert await matcher.similarity([1], []) == 0.0

    @pytest.mark.asyncio
    async def test_primitives_default_to_exact(self):
        """Without an item comparator primitives use exact."""
        matcher = StructuralMatcher()
        assert await matcher.similarity("a", "a") == 1.0
        assert await matcher.similarity("a", {"a": 1}) == 0.0

    @pytest.mark.asyncio
    async def test_primitive_item_comparator(self):
        """Primitive arrays pair by the item comparator's similarity."""
        result = await match_arrays([100, 200], [198, 101], item_comparator=within(0.1))
        assert result.assignments == [(0, 1), (1, 0)]
