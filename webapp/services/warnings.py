"""
Advisory warnings attached to compiled way records.

A warning never blocks compilation; it tells the reader that a tag's final
value is inconsistent with other tags on the same way.
"""

from __future__ import annotations

from dataclasses import dataclass

from services.osm_values import OsmUnsignedInteger
from services.tags import Tag


@dataclass(frozen=True)
class TagWarning:
    """An immutable, tag-scoped note about an inconsistent value."""

    tag: Tag
    code: str
    message: str

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}

    @classmethod
    def oneway_with_backward_lanes(cls, tag: Tag, lanes_backward: OsmUnsignedInteger) -> TagWarning:
        return cls(
            tag,
            "oneway_with_backward_lanes",
            f"Way is set as 'oneway' while also specifying '{lanes_backward}' backward lanes.",
        )

    @classmethod
    def not_oneway_without_backward_lanes(cls, tag: Tag) -> TagWarning:
        return cls(
            tag,
            "not_oneway_without_backward_lanes",
            "Way is not set as 'oneway' while having no backward lanes.",
        )

    @classmethod
    def lanes_equal_zero(cls, tag: Tag) -> TagWarning:
        return cls(tag, "lanes_equal_zero", f"Way has 0 '{tag.osm_key}' specified.")

    @classmethod
    def lanes_unequal_to_forward_backward(
        cls,
        lanes: OsmUnsignedInteger,
        lanes_forward: OsmUnsignedInteger,
        lanes_backward: OsmUnsignedInteger,
    ) -> TagWarning:
        total = lanes_forward.add(lanes_backward)
        return cls(
            Tag.LANES,
            "lanes_unequal_to_forward_backward",
            f"Way has '{lanes}' lanes specified, however forward and backward lanes total to '{total}'.",
        )

    @classmethod
    def turn_lanes_unequal_to_lanes(
        cls,
        turn_lanes_tag: Tag,
        turn_lanes_count: int,
        lanes_tag: Tag,
        lanes_count: OsmUnsignedInteger,
    ) -> TagWarning:
        return cls(
            turn_lanes_tag,
            "turn_lanes_unequal_to_lanes",
            f"'{lanes_tag.osm_key}' specifies '{lanes_count}' lanes, "
            f"however '{turn_lanes_tag.osm_key}' specifies '{turn_lanes_count}' lanes.",
        )


class WarningCollector:
    """Per-tag warnings, de-duplicated and kept in the order they were raised."""

    def __init__(self):
        self._warnings: dict[Tag, dict[TagWarning, None]] = {}

    def add(self, warning: TagWarning) -> None:
        self._warnings.setdefault(warning.tag, {})[warning] = None

    def for_tag(self, tag: Tag) -> tuple[TagWarning, ...]:
        return tuple(self._warnings.get(tag, {}))

    def __len__(self) -> int:
        return sum(len(warnings) for warnings in self._warnings.values())

    def as_mapping(self) -> dict[Tag, tuple[TagWarning, ...]]:
        return {tag: tuple(warnings) for tag, warnings in self._warnings.items() if warnings}
