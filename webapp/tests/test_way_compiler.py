"""Tests for services/way_compiler.py — end-to-end way compilation."""

from __future__ import annotations

import pytest


def _codes(record, tag):
    return [warning.code for warning in record.warnings_for(tag)]


class TestParseRawTags:
    """Test decoding of the raw tag dictionary."""

    def test_absent_keys_stay_unset(self):
        from services.tags import Tag
        from services.way_compiler import parse_raw_tags
        tags = parse_raw_tags({"lanes": "2"})
        assert tags[Tag.LANES].get() == 2
        assert not tags[Tag.ONEWAY].is_set()
        assert not tags[Tag.TURN_LANES].is_set()

    def test_unrecognised_keys_ignored(self):
        from services.way_compiler import parse_raw_tags
        tags = parse_raw_tags({"highway": "primary", "name": "Main Street"})
        assert not any(maybe.is_set() for maybe in tags.values())

    def test_error_names_the_key(self):
        from services.errors import InvalidEncodingError
        from services.way_compiler import parse_raw_tags
        with pytest.raises(InvalidEncodingError) as exc_info:
            parse_raw_tags({"lanes:forward": "two"})
        assert exc_info.value.key == "lanes:forward"
        assert exc_info.value.value == "two"
        assert "lanes:forward" in str(exc_info.value)


class TestCompileWayScenarios:
    """Worked examples of the full pipeline."""

    def test_oneway_without_lane_counts(self, make_way, oneway_tags):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way(oneway_tags))
        assert record.tags[Tag.LANES] == 1
        assert record.tags[Tag.LANES_FORWARD] == 1
        assert record.tags[Tag.LANES_BACKWARD] == 0
        assert record.tags[Tag.TURN_LANES_FORWARD].as_lists() == [["none"]]
        assert len(record.tags[Tag.TURN_LANES_BACKWARD]) == 0
        assert record.warnings == {}

    def test_total_lanes_split_evenly(self, make_way, four_lane_tags):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way(four_lane_tags))
        assert record.tags[Tag.ONEWAY].get() is False
        assert record.tags[Tag.LANES_FORWARD] == 2
        assert record.tags[Tag.LANES_BACKWARD] == 2
        assert record.tags[Tag.SURFACE] == "asphalt"
        assert record.warnings == {}

    def test_oneway_with_backward_lanes_warns(self, make_way):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({"oneway": "yes", "lanes:backward": "1"}))
        assert "oneway_with_backward_lanes" in _codes(record, Tag.ONEWAY)
        assert "oneway_with_backward_lanes" in _codes(record, Tag.LANES_BACKWARD)
        assert record.tags[Tag.LANES_BACKWARD] == 1
        assert not record.is_inferred(Tag.LANES_BACKWARD)

    def test_turn_lanes_match_lane_count(self, make_way, turn_lane_tags):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way(turn_lane_tags))
        turn_lanes = record.tags[Tag.TURN_LANES_FORWARD]
        assert len(turn_lanes) == 2
        assert turn_lanes.as_lists() == [["left"], ["through", "right"]]
        assert record.tags[Tag.ONEWAY].get() is False
        assert record.tags[Tag.LANES] == 3
        assert record.tags[Tag.LANES_BACKWARD] == 1
        assert record.warnings == {}

    def test_backward_lanes_only_adds_one_forward_lane(self, make_way):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({"lanes:backward": "2"}))
        assert record.tags[Tag.LANES] == 3
        assert record.tags[Tag.LANES_FORWARD] == 1
        assert record.warnings == {}

    def test_turn_lanes_mismatch_warns(self, make_way, turn_lane_tags):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({**turn_lane_tags, "lanes:forward": "3"}))
        assert len(record.tags[Tag.TURN_LANES_FORWARD]) == 2
        assert _codes(record, Tag.TURN_LANES_FORWARD) == ["turn_lanes_unequal_to_lanes"]
        message = record.warnings_for(Tag.TURN_LANES_FORWARD)[0].message
        assert "'lanes:forward' specifies '3' lanes" in message

    def test_malformed_value_fails(self, make_way):
        from services.errors import InvalidEncodingError
        from services.way_compiler import compile_way
        with pytest.raises(InvalidEncodingError):
            compile_way(make_way({"lanes": "abc"}))

    def test_oneway_turn_lanes_become_forward(self, make_way):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({"oneway": "yes", "lanes": "2", "turn:lanes": "left|through"}))
        assert str(record.tags[Tag.TURN_LANES_FORWARD]) == "left|through"
        assert Tag.TURN_LANES not in record.tags

    def test_lanes_unequal_to_forward_backward(self, make_way):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({"lanes": "5", "lanes:forward": "2", "lanes:backward": "2"}))
        assert _codes(record, Tag.LANES) == ["lanes_unequal_to_forward_backward"]
        assert "total to '4'" in record.warnings_for(Tag.LANES)[0].message


class TestWayRecord:
    """Test record properties."""

    def test_deterministic(self, make_way, turn_lane_tags):
        from services.way_compiler import compile_way
        first = compile_way(make_way(turn_lane_tags)).to_dict()
        second = compile_way(make_way(turn_lane_tags)).to_dict()
        assert first == second

    def test_inferred_flags(self, make_way):
        from services.tags import OUTPUT_TAGS, Tag
        from services.way_compiler import compile_way, parse_raw_tags
        raw = {"lanes": "4", "surface": "gravel"}
        record = compile_way(make_way(raw))
        parsed = parse_raw_tags(raw)
        for tag in OUTPUT_TAGS:
            if parsed[tag].is_set():
                assert not record.is_inferred(tag)
            else:
                assert record.is_inferred(tag)
        assert record.inferred == frozenset(OUTPUT_TAGS) - {Tag.LANES, Tag.SURFACE}

    def test_record_is_read_only(self, make_way, oneway_tags):
        from services.osm_values import OsmUnsignedInteger
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way(oneway_tags))
        with pytest.raises(TypeError):
            record.tags[Tag.LANES] = OsmUnsignedInteger(7)

    def test_original_tags_kept(self, make_way, oneway_tags):
        from services.way_compiler import compile_way
        record = compile_way(make_way(oneway_tags, way_id=42, nodes=(5, 6)))
        assert dict(record.original_tags) == oneway_tags
        assert record.nodes == (5, 6)
        assert record.way_id == 42

    def test_to_dict(self, make_way):
        from services.way_compiler import compile_way
        record = compile_way(make_way({"oneway": "yes", "lanes:backward": "1"}, way_id=7))
        data = record.to_dict()
        assert data["id"] == 7
        assert data["tags"]["oneway"] == "yes"
        assert data["tags"]["lanes:backward"] == "1"
        assert data["turn_lanes"]["turn:lanes:backward"] == [["none"]]
        assert "turn:lanes" not in data["tags"]
        assert data["inferred"] == sorted(data["inferred"])
        assert "lanes:backward" not in data["inferred"]
        assert data["warnings"]["oneway"][0]["code"] == "oneway_with_backward_lanes"

    def test_serialised_tags_compile_to_same_record(self, make_way, oneway_tags):
        from services.tags import Tag
        from services.way_compiler import compile_way
        first = compile_way(make_way(oneway_tags))
        data = first.to_dict()
        assert data["tags"]["turn:lanes:backward"] == ""
        assert data["turn_lanes"]["turn:lanes:backward"] == []

        second = compile_way(make_way(data["tags"]))
        assert dict(second.tags) == dict(first.tags)
        assert len(second.tags[Tag.TURN_LANES_BACKWARD]) == 0
        assert second.warnings == {}
        assert second.inferred == frozenset()

    def test_blank_turn_lanes_expand_to_lane_count(self, make_way):
        from services.tags import Tag
        from services.way_compiler import compile_way
        record = compile_way(make_way({"lanes": "4", "turn:lanes:backward": ""}))
        assert record.tags[Tag.TURN_LANES_BACKWARD].as_lists() == [["none"], ["none"]]
        assert not record.is_inferred(Tag.TURN_LANES_BACKWARD)
        assert record.warnings == {}


class TestCompileWays:
    """Test batch compilation."""

    def test_preserves_order_and_skips_bad_ways(self, make_way):
        from services.way_compiler import compile_ways
        ways = [make_way({"lanes": "2"}, way_id=i) for i in range(1, 40)]
        ways[10] = make_way({"oneway": "maybe"}, way_id=11)
        results = compile_ways(ways, workers=4)
        assert [result.way_id for result in results] == list(range(1, 40))
        assert not results[10].ok
        assert "oneway" in results[10].error
        assert all(result.ok for i, result in enumerate(results) if i != 10)

    def test_serial_and_parallel_agree(self, make_way, turn_lane_tags, four_lane_tags):
        from services.way_compiler import compile_ways
        ways = [make_way(turn_lane_tags if i % 2 else four_lane_tags, way_id=i) for i in range(1, 30)]
        serial = [result.to_dict() for result in compile_ways(ways, workers=1)]
        parallel = [result.to_dict() for result in compile_ways(ways, workers=3)]
        assert serial == parallel

    def test_result_to_dict(self, make_way):
        from services.way_compiler import compile_ways
        results = compile_ways([make_way({"lanes": "x"}, way_id=3)])
        assert results[0].to_dict() == {"id": 3, "ok": False, "error": results[0].error}
