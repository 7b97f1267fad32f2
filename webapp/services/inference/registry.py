"""
Inference rules for every output tag.

Calculations are exact derivations; for a given set of tags any two
calculations of the same tag that both fire must agree. Fallbacks are
heuristics ordered by preference. Definitions are evaluated in the order
they appear in INFERENCE_DEFINITIONS.
"""

from __future__ import annotations

from typing import Mapping

from config import NO_MARKING, ONEWAY_JUNCTIONS, TAG_DEFAULTS
from services.inference.builder import infer
from services.inference.definition import InferenceDefinition
from services.osm_values import (
    OsmArray,
    OsmBoolean,
    OsmDoubleArray,
    OsmString,
    OsmUnsignedInteger,
    OsmValue,
)
from services.tags import OUTPUT_TAGS, TAG_PARSERS, TAG_VALUE_TYPES, Tag
from services.warnings import TagWarning, WarningCollector

# Lane count that each directed turn-lane tag must agree with.
TURN_LANE_COUNTS: dict[Tag, Tag] = {
    Tag.TURN_LANES_FORWARD: Tag.LANES_FORWARD,
    Tag.TURN_LANES_BACKWARD: Tag.LANES_BACKWARD,
}


def _default(tag: Tag) -> OsmValue:
    raw = TAG_DEFAULTS[tag.value]
    # An empty turn-lane default means no rows, not one row holding an empty marking.
    if TAG_VALUE_TYPES[tag] is OsmDoubleArray and raw == "":
        return OsmDoubleArray.empty()
    return TAG_PARSERS[tag](raw)


def _difference(minuend: Tag, subtrahend: Tag):
    """Compute `minuend - subtrahend`, declining when the result would be negative."""
    def compute(tags):
        if tags[minuend].get() < tags[subtrahend].get():
            return None
        return tags[minuend].subtract(tags[subtrahend])
    return compute


def _is_even(lanes: OsmUnsignedInteger) -> bool:
    return lanes.modulo(2) == 0


def _lane_rows(lanes_tag: Tag):
    """One row holding a single empty marking per lane."""
    def compute(tags):
        return OsmDoubleArray.of_length(tags[lanes_tag].get())
    return compute


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

def _explicit_markings(row: OsmArray) -> OsmArray:
    if len(row) == 0:
        row = OsmArray.of_length(1)
    return row.map(lambda marking: OsmString(NO_MARKING) if marking == "" else marking)


def format_turn_lanes(tag: Tag, value: OsmDoubleArray, tags: Mapping[Tag, OsmValue]) -> OsmDoubleArray:
    """
    Spell out turn markings explicitly.

    An empty value gets one row per lane of its direction, and every missing
    marking becomes `none`. A blank raw value (`""`, which decodes to one
    empty row) counts as empty, so a serialised record compiles back to
    itself. Other values keep their row count so that a mismatch with the
    lane count is still reported by validation.
    """
    lanes_tag = TURN_LANE_COUNTS.get(tag)
    if lanes_tag is None:
        return value

    if len(value) == 0 or str(value) == "":
        value = OsmDoubleArray.of_length(tags[lanes_tag].get())
    return value.map_rows(_explicit_markings)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def _validate_direction(tag: Tag):
    def validate(value, tags: Mapping[Tag, OsmValue], warnings: WarningCollector) -> None:
        oneway = tags[Tag.ONEWAY]
        lanes_backward = tags[Tag.LANES_BACKWARD]
        if oneway == OsmBoolean.TRUE and lanes_backward != 0:
            warnings.add(TagWarning.oneway_with_backward_lanes(tag, lanes_backward))
        if oneway == OsmBoolean.FALSE and lanes_backward == 0:
            warnings.add(TagWarning.not_oneway_without_backward_lanes(tag))
    return validate


def validate_lanes(lanes: OsmUnsignedInteger, tags: Mapping[Tag, OsmValue], warnings: WarningCollector) -> None:
    if lanes == 0:
        warnings.add(TagWarning.lanes_equal_zero(Tag.LANES))

    lanes_forward = tags[Tag.LANES_FORWARD]
    lanes_backward = tags[Tag.LANES_BACKWARD]
    if lanes != lanes_forward.add(lanes_backward):
        warnings.add(TagWarning.lanes_unequal_to_forward_backward(lanes, lanes_forward, lanes_backward))


def validate_lanes_forward(
    lanes_forward: OsmUnsignedInteger,
    tags: Mapping[Tag, OsmValue],
    warnings: WarningCollector,
) -> None:
    if lanes_forward == 0:
        warnings.add(TagWarning.lanes_equal_zero(Tag.LANES_FORWARD))


def _validate_turn_lanes(tag: Tag):
    lanes_tag = TURN_LANE_COUNTS[tag]

    def validate(value: OsmDoubleArray, tags: Mapping[Tag, OsmValue], warnings: WarningCollector) -> None:
        lanes = tags[lanes_tag]
        if lanes != len(value):
            warnings.add(TagWarning.turn_lanes_unequal_to_lanes(tag, len(value), lanes_tag, lanes))
    return validate


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

ONEWAY = InferenceDefinition(
    Tag.ONEWAY,
    default=_default(Tag.ONEWAY),
    calculations=(
        infer(Tag.ONEWAY)
        .assert_is_eq(Tag.LANES_BACKWARD, 0)
        .complete(lambda tags: OsmBoolean.TRUE, "no backward lanes"),
        infer(Tag.ONEWAY)
        .assert_that(Tag.JUNCTION, lambda junction: str(junction) in ONEWAY_JUNCTIONS, "roundabout")
        .complete(lambda tags: OsmBoolean.TRUE, "roundabout junction"),
    ),
    fallbacks=(
        infer(Tag.ONEWAY).complete(lambda tags: OsmBoolean.FALSE, "two-way unless stated"),
    ),
    validator=_validate_direction(Tag.ONEWAY),
)

# Nothing implies a junction type; a missing junction stays at the default.
JUNCTION = InferenceDefinition(Tag.JUNCTION, default=_default(Tag.JUNCTION))

SURFACE = InferenceDefinition(Tag.SURFACE, default=_default(Tag.SURFACE))

LANES = InferenceDefinition(
    Tag.LANES,
    default=_default(Tag.LANES),
    calculations=(
        infer(Tag.LANES)
        .assert_is_eq(Tag.ONEWAY, True)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(lambda tags: tags[Tag.LANES_FORWARD], "oneway: lanes = lanes:forward"),
        infer(Tag.LANES)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_is_set(Tag.LANES_FORWARD)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(
            lambda tags: tags[Tag.LANES_FORWARD].add(tags[Tag.LANES_BACKWARD]),
            "two-way: lanes = forward + backward",
        ),
    ),
    fallbacks=(
        infer(Tag.LANES)
        .assert_is_set(Tag.LANES_FORWARD)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(
            lambda tags: tags[Tag.LANES_FORWARD].add(tags[Tag.LANES_BACKWARD]),
            "forward + backward",
        ),
        infer(Tag.LANES)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(lambda tags: tags[Tag.LANES_FORWARD].add(1), "two-way: one backward lane"),
        infer(Tag.LANES)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(lambda tags: tags[Tag.LANES_BACKWARD].add(1), "two-way: one forward lane"),
        infer(Tag.LANES)
        .assert_is_set(Tag.ONEWAY)
        .complete(
            lambda tags: OsmUnsignedInteger(1 if tags[Tag.ONEWAY].get() else 2),
            "one lane per direction",
        ),
    ),
    validator=validate_lanes,
)

LANES_FORWARD = InferenceDefinition(
    Tag.LANES_FORWARD,
    default=_default(Tag.LANES_FORWARD),
    calculations=(
        infer(Tag.LANES_FORWARD)
        .assert_is_eq(Tag.ONEWAY, True)
        .assert_is_set(Tag.LANES)
        .complete(lambda tags: tags[Tag.LANES], "oneway: lanes:forward = lanes"),
        infer(Tag.LANES_FORWARD)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_is_set(Tag.LANES)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(_difference(Tag.LANES, Tag.LANES_BACKWARD), "two-way: lanes - backward"),
    ),
    fallbacks=(
        infer(Tag.LANES_FORWARD)
        .assert_is_eq(Tag.ONEWAY, True)
        .assert_is_set(Tag.LANES)
        .complete(lambda tags: tags[Tag.LANES], "oneway: all lanes forward"),
        infer(Tag.LANES_FORWARD)
        .assert_is_set(Tag.LANES)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(_difference(Tag.LANES, Tag.LANES_BACKWARD), "lanes - backward"),
        infer(Tag.LANES_FORWARD)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_that(Tag.LANES, _is_even, "even lane count")
        .complete(lambda tags: tags[Tag.LANES].divide(2), "even split"),
    ),
    validator=validate_lanes_forward,
)

LANES_BACKWARD = InferenceDefinition(
    Tag.LANES_BACKWARD,
    default=_default(Tag.LANES_BACKWARD),
    calculations=(
        infer(Tag.LANES_BACKWARD)
        .assert_is_eq(Tag.ONEWAY, True)
        .complete(lambda tags: OsmUnsignedInteger(0), "oneway: no backward lanes"),
        infer(Tag.LANES_BACKWARD)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_is_set(Tag.LANES)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(_difference(Tag.LANES, Tag.LANES_FORWARD), "two-way: lanes - forward"),
    ),
    fallbacks=(
        infer(Tag.LANES_BACKWARD)
        .assert_is_set(Tag.LANES)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(_difference(Tag.LANES, Tag.LANES_FORWARD), "lanes - forward"),
        infer(Tag.LANES_BACKWARD)
        .assert_is_eq(Tag.ONEWAY, False)
        .assert_that(Tag.LANES, _is_even, "even lane count")
        .complete(lambda tags: tags[Tag.LANES].divide(2), "even split"),
    ),
    validator=_validate_direction(Tag.LANES_BACKWARD),
)

TURN_LANES_FORWARD = InferenceDefinition(
    Tag.TURN_LANES_FORWARD,
    default=_default(Tag.TURN_LANES_FORWARD),
    calculations=(
        infer(Tag.TURN_LANES_FORWARD)
        .assert_is_eq(Tag.ONEWAY, True)
        .assert_is_set(Tag.TURN_LANES)
        .complete(lambda tags: tags[Tag.TURN_LANES], "oneway: turn:lanes are forward"),
    ),
    fallbacks=(
        infer(Tag.TURN_LANES_FORWARD)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(_lane_rows(Tag.LANES_FORWARD), "unmarked forward lanes"),
    ),
    formatter=format_turn_lanes,
    validator=_validate_turn_lanes(Tag.TURN_LANES_FORWARD),
)

TURN_LANES_BACKWARD = InferenceDefinition(
    Tag.TURN_LANES_BACKWARD,
    default=_default(Tag.TURN_LANES_BACKWARD),
    calculations=(
        infer(Tag.TURN_LANES_BACKWARD)
        .assert_is_eq(Tag.ONEWAY, True)
        .complete(lambda tags: OsmDoubleArray.empty(), "oneway: no backward markings"),
    ),
    fallbacks=(
        infer(Tag.TURN_LANES_BACKWARD)
        .assert_is_set(Tag.LANES_BACKWARD)
        .complete(_lane_rows(Tag.LANES_BACKWARD), "unmarked backward lanes"),
    ),
    formatter=format_turn_lanes,
    validator=_validate_turn_lanes(Tag.TURN_LANES_BACKWARD),
)

INFERENCE_DEFINITIONS: tuple[InferenceDefinition, ...] = (
    ONEWAY,
    JUNCTION,
    SURFACE,
    LANES,
    LANES_FORWARD,
    LANES_BACKWARD,
    TURN_LANES_FORWARD,
    TURN_LANES_BACKWARD,
)


def check_definitions(definitions: tuple[InferenceDefinition, ...]) -> None:
    """Every output tag has exactly one definition, and nothing else does."""
    seen: set[Tag] = set()
    for definition in definitions:
        if definition.tag in seen:
            raise ValueError(f"Duplicate inference definition for '{definition.tag}'")
        if not definition.tag.is_output:
            raise ValueError(f"Helper tag '{definition.tag}' cannot have an inference definition")
        seen.add(definition.tag)

    missing = [tag.value for tag in OUTPUT_TAGS if tag not in seen]
    if missing:
        raise ValueError(f"Missing inference definitions for: {', '.join(missing)}")


check_definitions(INFERENCE_DEFINITIONS)

DEFINITIONS_BY_TAG: dict[Tag, InferenceDefinition] = {
    definition.tag: definition for definition in INFERENCE_DEFINITIONS
}
