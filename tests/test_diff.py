"""Tests for the field-level diff walker.

Test coverage:
- Path formatting for nested objects and arrays
- Scope inheritance and skipping of unconfigured fields
- Ordered and unordered array pairing, unmatched placeholders
- Structural mismatches and whole-value comparison
"""

import pytest

from extract_evo.core.comparators import custom, exact, name, within
from extract_evo.core.comparator_spec import unordered
from extract_evo.core.diff import compare_fields, compare_whole


def verdicts(fields):
    return {path: f.passed for path, f in fields.items()}


class TestPaths:
    """Tests for field path construction."""

    @pytest.mark.asyncio
    async def test_nested_array_path(self):
        """Object keys use dots, indices use brackets."""
        expected = {"quotes": [{"carrier": "A", "premium": 1}]}
        actual = {"quotes": [{"carrier": "A", "premium": 2}]}
        fields = await compare_fields(expected, actual, {"carrier": exact})

        assert verdicts(fields) == {"quotes[0].carrier": True}

    @pytest.mark.asyncio
    async def test_root_primitive(self):
        """A primitive root is graded with exact at the empty path."""
        assert verdicts(await compare_fields("a", "a")) == {"": True}
        assert verdicts(await compare_fields(1, 2)) == {"": False}

    @pytest.mark.asyncio
    async def test_root_primitive_array(self):
        """Root array items are graded by index."""
        fields = await compare_fields([1, 2], [1, 3])
        assert verdicts(fields) == {"[0]": True, "[1]": False}


class TestScopes:
    """Tests for comparator lookup."""

    @pytest.mark.asyncio
    async def test_unconfigured_fields_are_skipped(self):
        """Only keys with a comparator produce results."""
        fields = await compare_fields({"a": 1, "b": 2}, {"a": 1, "b": 3}, {"a": exact})
        assert verdicts(fields) == {"a": True}

    @pytest.mark.asyncio
    async def test_nested_mapping_opens_scope(self):
        """A nested mapping applies only beneath its key."""
        expected = {"buyer": {"name": "Acme Inc.", "id": 5}, "name": "x"}
        actual = {"buyer": {"name": "ACME", "id": 6}, "name": "y"}
        fields = await compare_fields(expected, actual, {"buyer": {"name": name}})

        assert verdicts(fields) == {"buyer.name": True}

    @pytest.mark.asyncio
    async def test_custom_comparator_sees_parents(self):
        """Cross-field rules read the immediate parent objects."""
        rule = custom(lambda e, a, ctx: e == a and ctx.actual_parent["currency"] == "USD")
        expected = {"amount": 100, "currency": "USD"}

        ok = await compare_fields(expected, {"amount": 100, "currency": "USD"}, {"amount": rule})
        bad = await compare_fields(expected, {"amount": 100, "currency": "EUR"}, {"amount": rule})

        assert verdicts(ok) == {"amount": True}
        assert verdicts(bad) == {"amount": False}

    @pytest.mark.asyncio
    async def test_async_comparator(self):
        """Coroutine comparators are awaited by the walker."""
        async def always(expected, actual, context=None):
            return True

        fields = await compare_fields({"a": 1}, {"a": 2}, {"a": always})
        assert verdicts(fields) == {"a": True}


class TestStructure:
    """Tests for missing and mismatched structure."""

    @pytest.mark.asyncio
    async def test_missing_actual_key_fails(self):
        """A configured key missing from the output is compared against None."""
        fields = await compare_fields({"a": 1}, {}, {"a": exact})
        assert verdicts(fields) == {"a": False}
        assert fields["a"].actual is None

    @pytest.mark.asyncio
    async def test_non_object_actual(self):
        """An object compared with a non-object fails once at its path."""
        fields = await compare_fields({"a": 1}, "x", {"a": exact})
        assert verdicts(fields) == {"": False}

    @pytest.mark.asyncio
    async def test_non_array_actual(self):
        """An array compared with a non-array fails once at its path."""
        fields = await compare_fields({"items": [1]}, {"items": None}, {"items": exact})
        assert verdicts(fields) == {"items": False}

    @pytest.mark.asyncio
    async def test_empty_expected_array(self):
        """An empty expected array produces no fields."""
        assert await compare_fields([], [1, 2]) == {}
        assert verdicts(await compare_fields([], "x")) == {"": False}

    @pytest.mark.asyncio
    async def test_ordered_missing_items(self):
        """Items beyond the actual length fail when the array is configured."""
        fields = await compare_fields({"tags": ["a", "b"]}, {"tags": ["a"]}, {"tags": exact})
        assert verdicts(fields) == {"tags[0]": True, "tags[1]": False}

        assert await compare_fields({"tags": ["a", "b"]}, {"tags": ["a"]}, {"other": exact}) == {}


class TestUnordered:
    """Tests for unordered array pairing."""

    @pytest.mark.asyncio
    async def test_missing_item_gets_placeholders(self):
        """Unmatched expected objects fail on each configured key."""
        fields = await compare_fields([{"id": 1}, {"id": 2}], [{"id": 1}], unordered({"id": exact}))
        assert verdicts(fields) == {"[0].id": True, "[1].id": False}

    @pytest.mark.asyncio
    async def test_extra_actual_item_ignored(self):
        """Surplus output items are not graded."""
        fields = await compare_fields([{"id": 1}], [{"id": 2}, {"id": 1}], unordered({"id": exact}))
        assert verdicts(fields) == {"[0].id": True}

    @pytest.mark.asyncio
    async def test_pairs_by_similarity(self):
        """Reordered quotes are paired with their closest counterparts."""
        expected = [{"premium": 100}, {"premium": 200}]
        actual = [{"premium": 210}, {"premium": 95}]
        fields = await compare_fields(expected, actual, unordered({"premium": within(0.1)}))

        assert verdicts(fields) == {"[0].premium": True, "[1].premium": True}
        assert fields["[0].premium"].actual == 95

    @pytest.mark.asyncio
    async def test_global_flag(self):
        """unordered_lists applies Hungarian pairing to every array."""
        expected, actual = {"tags": ["a", "b"]}, {"tags": ["b", "a"]}

        ordered = await compare_fields(expected, actual, {"tags": exact})
        assert verdicts(ordered) == {"tags[0]": False, "tags[1]": False}

        paired = await compare_fields(expected, actual, {"tags": exact}, unordered_lists=True)
        assert verdicts(paired) == {"tags[0]": True, "tags[1]": True}

    @pytest.mark.asyncio
    async def test_field_level_unordered(self):
        """unordered() on one field leaves sibling arrays ordered."""
        expected = {"tags": ["a", "b"], "codes": ["x", "y"]}
        actual = {"tags": ["b", "a"], "codes": ["y", "x"]}
        fields = await compare_fields(expected, actual, {"tags": unordered(exact), "codes": exact})

        assert verdicts(fields) == {
            "tags[0]": True, "tags[1]": True,
            "codes[0]": False, "codes[1]": False,
        }


class TestWholeValue:
    """Tests for single-comparator and override modes."""

    @pytest.mark.asyncio
    async def test_single_comparator_on_object(self):
        """A single comparator grades a non-array root as one field."""
        fields = await compare_fields({"a": 1, "b": 2}, {"a": 1, "b": 2}, exact)
        assert verdicts(fields) == {"": True}

    @pytest.mark.asyncio
    async def test_single_comparator_on_array_of_objects(self):
        """Each element is graded whole; a missing element fails at its index."""
        fields = await compare_fields([{"a": 1}, {"a": 2}], [{"a": 1}], exact)
        assert verdicts(fields) == {"[0]": True, "[1]": False}

    @pytest.mark.asyncio
    async def test_compare_whole(self):
        """The override produces a single root field."""
        fields = await compare_whole(lambda e, a, ctx: len(a) == len(e), [1, 2], ["x", "y"])
        assert verdicts(fields) == {"": True}
