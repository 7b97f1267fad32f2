"""Tests for services/inference/builder.py — pathway builder and execution."""

from __future__ import annotations

import pytest


class TestPathwayBuilder:
    """Test immutable pathway construction."""

    def test_assertions_return_new_builders(self):
        from services.inference.builder import infer
        from services.tags import Tag
        base = infer(Tag.LANES)
        extended = base.assert_is_set(Tag.LANES_FORWARD)
        assert base.required == ()
        assert extended.required == (Tag.LANES_FORWARD,)

    def test_assert_that_also_requires_tag(self):
        from services.inference.builder import infer
        from services.tags import Tag
        builder = infer(Tag.LANES).assert_that(Tag.ONEWAY, lambda value: value.get())
        assert builder.required == (Tag.ONEWAY,)
        assert len(builder.conditions) == 1

    def test_duplicate_requirements_collapse(self):
        from services.inference.builder import infer
        from services.tags import Tag
        builder = (
            infer(Tag.LANES)
            .assert_is_set(Tag.ONEWAY)
            .assert_is_eq(Tag.ONEWAY, True)
        )
        assert builder.required == (Tag.ONEWAY,)

    def test_cannot_require_target_tag(self):
        from services.inference.builder import infer
        from services.tags import Tag
        with pytest.raises(ValueError):
            infer(Tag.LANES).assert_is_set(Tag.LANES)


class TestPathwayExecution:
    """Test the execution contract of completed pathways."""

    def _lanes_from_forward(self):
        from services.inference.builder import infer
        from services.tags import Tag
        return (
            infer(Tag.LANES)
            .assert_is_eq(Tag.ONEWAY, True)
            .assert_is_set(Tag.LANES_FORWARD)
            .complete(lambda tags: tags[Tag.LANES_FORWARD], "oneway lanes")
        )

    def test_fires_when_preconditions_hold(self, working_tags):
        tags = working_tags({"oneway": "yes", "lanes:forward": "3"})
        assert self._lanes_from_forward().execute(tags) == 3

    def test_no_result_when_required_tag_unset(self, working_tags):
        tags = working_tags({"oneway": "yes"})
        assert self._lanes_from_forward().execute(tags) is None

    def test_no_result_when_predicate_fails(self, working_tags):
        tags = working_tags({"oneway": "no", "lanes:forward": "3"})
        assert self._lanes_from_forward().execute(tags) is None

    def test_no_result_when_target_already_set(self, working_tags):
        tags = working_tags({"oneway": "yes", "lanes:forward": "3", "lanes": "5"})
        assert self._lanes_from_forward().execute(tags) is None

    def test_compute_sees_only_required_tags(self, working_tags):
        from services.inference.builder import infer
        from services.osm_values import OsmUnsignedInteger
        from services.tags import Tag
        seen = {}

        def compute(tags):
            seen.update(tags)
            return OsmUnsignedInteger(1)

        pathway = infer(Tag.LANES).assert_is_set(Tag.LANES_FORWARD).complete(compute)
        pathway.execute(working_tags({"lanes:forward": "1", "oneway": "yes", "surface": "asphalt"}))
        assert set(seen) == {Tag.LANES_FORWARD}

    def test_compute_view_is_read_only(self, working_tags):
        from services.inference.builder import infer
        from services.osm_values import OsmUnsignedInteger
        from services.tags import Tag

        def compute(tags):
            tags[Tag.LANES_FORWARD] = OsmUnsignedInteger(9)
            return OsmUnsignedInteger(1)

        pathway = infer(Tag.LANES).assert_is_set(Tag.LANES_FORWARD).complete(compute)
        with pytest.raises(TypeError):
            pathway.execute(working_tags({"lanes:forward": "1"}))

    def test_compute_may_decline(self, working_tags):
        from services.inference.builder import infer
        from services.tags import Tag
        pathway = infer(Tag.LANES).assert_is_set(Tag.LANES_FORWARD).complete(lambda tags: None)
        assert pathway.execute(working_tags({"lanes:forward": "1"})) is None

    def test_wrong_result_type_raises(self, working_tags):
        from services.inference.builder import infer
        from services.osm_values import OsmString
        from services.tags import Tag
        pathway = infer(Tag.LANES).complete(lambda tags: OsmString("2"), "bad type")
        with pytest.raises(TypeError, match="bad type"):
            pathway.execute(working_tags({}))

    def test_unconditional_pathway(self, working_tags):
        from services.inference.builder import infer
        from services.osm_values import OsmBoolean
        from services.tags import Tag
        pathway = infer(Tag.ONEWAY).complete(lambda tags: OsmBoolean.FALSE)
        assert pathway.execute(working_tags({})) == OsmBoolean.FALSE
