"""
Declarative pathways for inferring one tag from others.

A pathway is plain data: the tags it requires, the predicates those tags
must satisfy and a compute function. It is assembled with an immutable
builder:

    infer(Tag.LANES)
        .assert_is_eq(Tag.ONEWAY, True)
        .assert_is_set(Tag.LANES_FORWARD)
        .complete(lambda tags: tags[Tag.LANES_FORWARD])

The compute function only ever sees a read-only view of the tags it
declared as required, all of them guaranteed to be set.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from services.osm_values import OsmValue
from services.tags import TAG_VALUE_TYPES, Tag, WorkingTags

ComputeFn = Callable[[Mapping[Tag, OsmValue]], Optional[OsmValue]]
Predicate = Callable[[OsmValue], bool]


@dataclass(frozen=True)
class Condition:
    """A predicate one required tag's value must satisfy."""

    tag: Tag
    predicate: Predicate
    description: str = ""

    def holds(self, value: OsmValue) -> bool:
        return bool(self.predicate(value))


@dataclass(frozen=True)
class Pathway:
    """A completed inference pathway for `tag`."""

    tag: Tag
    required: tuple[Tag, ...]
    conditions: tuple[Condition, ...]
    compute: ComputeFn
    description: str = ""

    def preconditions_hold(self, tags: WorkingTags) -> bool:
        """All required tags are set and every condition holds."""
        if not all(tags[tag].is_set() for tag in self.required):
            return False
        return all(condition.holds(tags[condition.tag].get()) for condition in self.conditions)

    def evaluate(self, tags: WorkingTags) -> Optional[OsmValue]:
        """
        Compute a value regardless of whether the target tag is already set.

        Returns None when a precondition fails or the compute function
        declines to produce a value.
        """
        if not self.preconditions_hold(tags):
            return None

        view = MappingProxyType({tag: tags[tag].get() for tag in self.required})
        result = self.compute(view)
        if result is None:
            return None

        expected = TAG_VALUE_TYPES[self.tag]
        if not isinstance(result, expected):
            raise TypeError(
                f"Pathway '{self.description or self.tag}' returned "
                f"{type(result).__name__}, expected {expected.__name__}"
            )
        return result

    def execute(self, tags: WorkingTags) -> Optional[OsmValue]:
        """Infer a value for an unset target tag; a set target is left alone."""
        if tags[self.tag].is_set():
            return None
        return self.evaluate(tags)


@dataclass(frozen=True)
class PathwayBuilder:
    """Immutable builder; every assertion returns a new builder."""

    tag: Tag
    required: tuple[Tag, ...] = ()
    conditions: tuple[Condition, ...] = ()

    def assert_is_set(self, tag: Tag) -> PathwayBuilder:
        if tag is self.tag:
            raise ValueError(f"A pathway for '{tag}' cannot require '{tag}' itself")
        if tag in self.required:
            return self
        return replace(self, required=self.required + (tag,))

    def assert_that(self, tag: Tag, predicate: Predicate, description: str = "") -> PathwayBuilder:
        builder = self.assert_is_set(tag)
        condition = Condition(tag, predicate, description or f"{tag} matches")
        return replace(builder, conditions=builder.conditions + (condition,))

    def assert_is_eq(self, tag: Tag, value) -> PathwayBuilder:
        """Require `tag` to equal `value` (an OsmValue or a bare Python value)."""
        return self.assert_that(tag, lambda current: current == value, f"{tag} == {value}")

    def complete(self, compute: ComputeFn, description: str = "") -> Pathway:
        return Pathway(self.tag, self.required, self.conditions, compute, description)


def infer(tag: Tag) -> PathwayBuilder:
    """Start a pathway for `tag`."""
    return PathwayBuilder(tag)
