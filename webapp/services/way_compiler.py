"""
Way tag compiler.

Turns one raw way (node references plus a string-keyed tag dictionary) into
a complete WayRecord:

    raw tags -> parse -> calculate -> fallback -> default -> format -> validate

A malformed raw value fails the whole way with InvalidEncodingError. A
record is never returned half-complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from services.errors import InvalidEncodingError
from services.inference import finalize, perform_inferences, perform_transforms
from services.osm_values import OsmDoubleArray
from services.tags import TAG_PARSERS, FinalTags, Tag, WorkingTags, empty_working_tags
from services.utils.parallel import parallel_map
from services.warnings import TagWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawWay:
    """A way as delivered by the source database."""

    id: int
    nodes: tuple[int, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, element: Mapping) -> RawWay:
        """Build from an Overpass-style `{"id", "nodes", "tags"}` element."""
        return cls(
            id=int(element["id"]),
            nodes=tuple(int(node) for node in element.get("nodes", ())),
            tags=dict(element.get("tags") or {}),
        )


@dataclass(frozen=True)
class WayRecord:
    """The compiled, immutable description of one way."""

    way_id: int
    nodes: tuple[int, ...]
    original_tags: Mapping[str, str]
    tags: FinalTags
    inferred: frozenset[Tag]
    warnings: Mapping[Tag, tuple[TagWarning, ...]]

    def is_inferred(self, tag: Tag) -> bool:
        return tag in self.inferred

    def warnings_for(self, tag: Tag) -> tuple[TagWarning, ...]:
        return self.warnings.get(tag, ())

    @property
    def warning_count(self) -> int:
        return sum(len(warnings) for warnings in self.warnings.values())

    def to_dict(self) -> dict:
        """
        JSON-ready representation keyed by raw OpenStreetMap keys.

        A turn-lane tag with no rows encodes to `""` under "tags"; "turn_lanes"
        keeps the unambiguous row lists. Feeding "tags" back into compile_way
        yields the same record, since blank turn lanes format like absent ones.
        """
        return {
            "id": self.way_id,
            "nodes": list(self.nodes),
            "original_tags": dict(self.original_tags),
            "tags": {tag.osm_key: str(value) for tag, value in self.tags.items()},
            "turn_lanes": {
                tag.osm_key: value.as_lists()
                for tag, value in self.tags.items()
                if isinstance(value, OsmDoubleArray)
            },
            "inferred": sorted(tag.osm_key for tag in self.inferred),
            "warnings": {
                tag.osm_key: [warning.to_dict() for warning in warnings]
                for tag, warnings in self.warnings.items()
            },
        }


@dataclass(frozen=True)
class WayCompilation:
    """Outcome of compiling one way in a batch: a record or an error message."""

    way_id: int
    record: Optional[WayRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    def to_dict(self) -> dict:
        if self.record is not None:
            return {"id": self.way_id, "ok": True, "record": self.record.to_dict()}
        return {"id": self.way_id, "ok": False, "error": self.error}


def parse_raw_tags(raw_tags: Mapping[str, str]) -> WorkingTags:
    """
    Decode every recognised raw key; absent keys stay unset.

    Raises:
        InvalidEncodingError: A present value does not match its grammar.
            The raised error names the raw key.
    """
    tags = empty_working_tags()
    for tag in Tag:
        raw_value = raw_tags.get(tag.osm_key)
        if raw_value is None:
            continue
        try:
            tags[tag] = TAG_PARSERS[tag](raw_value).maybe()
        except InvalidEncodingError as err:
            raise InvalidEncodingError(err.value_type, raw_value, tag.osm_key) from err
    return tags


def compile_way(way: RawWay) -> WayRecord:
    """
    Compile one raw way into a WayRecord.

    Raises:
        InvalidEncodingError: A recognised tag holds a malformed value.
        MissingTagError: An output tag has no value after the default stage.
    """
    tags = parse_raw_tags(way.tags)
    outcome = perform_inferences(tags)
    final = finalize(tags)
    warnings = perform_transforms(final)

    logger.debug(
        f"Way {way.id}: inferred {sorted(tag.value for tag in outcome.inferred)} "
        f"({outcome.calculation_passes} calculation / {outcome.fallback_passes} fallback passes)"
    )

    return WayRecord(
        way_id=way.id,
        nodes=tuple(way.nodes),
        original_tags=MappingProxyType(dict(way.tags)),
        tags=MappingProxyType(final),
        inferred=outcome.inferred,
        warnings=MappingProxyType(warnings),
    )


def _compile_isolated(way: RawWay) -> WayCompilation:
    try:
        return WayCompilation(way.id, record=compile_way(way))
    except InvalidEncodingError as err:
        logger.warning(f"Skipping way {way.id}: {err}")
        return WayCompilation(way.id, error=str(err))


def compile_ways(ways: Iterable[RawWay], workers: Optional[int] = None) -> list[WayCompilation]:
    """
    Compile independent ways on a thread pool, preserving input order.

    Ways with malformed values are reported on their WayCompilation instead
    of aborting the batch.
    """
    results = parallel_map(_compile_isolated, ways, workers=workers)

    compiled = sum(1 for result in results if result.ok)
    warning_count = sum(result.record.warning_count for result in results if result.ok)
    logger.info(
        f"Compiled {compiled}/{len(results)} ways "
        f"({len(results) - compiled} skipped, {warning_count} warnings)"
    )
    return results
