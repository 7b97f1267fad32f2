"""
Recognised way tags and their value types.

Tag members are named in snake_case; `Tag.osm_key` gives the raw
OpenStreetMap key used in the input dictionary and the serialised record.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Mapping

from config import HELPER_TAGS, OSM_TAG_KEYS
from services.osm_values import (
    OsmBoolean,
    OsmDoubleArray,
    OsmMaybe,
    OsmString,
    OsmUnsignedInteger,
    OsmValue,
)


class Tag(str, Enum):
    ONEWAY = "oneway"
    JUNCTION = "junction"
    SURFACE = "surface"
    LANES = "lanes"
    LANES_FORWARD = "lanes_forward"
    LANES_BACKWARD = "lanes_backward"
    TURN_LANES = "turn_lanes"
    TURN_LANES_FORWARD = "turn_lanes_forward"
    TURN_LANES_BACKWARD = "turn_lanes_backward"

    @property
    def osm_key(self) -> str:
        return OSM_TAG_KEYS[self.value]

    @property
    def is_output(self) -> bool:
        """Helper tags are inference context only and never appear in a record."""
        return self.value not in HELPER_TAGS

    def __str__(self) -> str:
        return self.value


OUTPUT_TAGS: tuple[Tag, ...] = tuple(tag for tag in Tag if tag.is_output)

TAG_VALUE_TYPES: dict[Tag, type] = {
    Tag.ONEWAY: OsmBoolean,
    Tag.JUNCTION: OsmString,
    Tag.SURFACE: OsmString,
    Tag.LANES: OsmUnsignedInteger,
    Tag.LANES_FORWARD: OsmUnsignedInteger,
    Tag.LANES_BACKWARD: OsmUnsignedInteger,
    Tag.TURN_LANES: OsmDoubleArray,
    Tag.TURN_LANES_FORWARD: OsmDoubleArray,
    Tag.TURN_LANES_BACKWARD: OsmDoubleArray,
}

# Decoder for each tag's raw string. Turn lanes are double arrays of strings.
TAG_PARSERS: dict[Tag, Callable[[str], OsmValue]] = {
    tag: value_type.parse for tag, value_type in TAG_VALUE_TYPES.items()
}

# Mutable during inference: every tag maps to a set or unset OsmMaybe.
WorkingTags = dict[Tag, OsmMaybe]

# Immutable after inference: every output tag maps to a definite value.
FinalTags = Mapping[Tag, OsmValue]


def empty_working_tags() -> WorkingTags:
    return {tag: OsmMaybe() for tag in Tag}
