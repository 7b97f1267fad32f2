"""
Per-tag inference definitions.

An InferenceDefinition bundles everything needed to produce one tag's final
value: exact calculation pathways, heuristic fallback pathways, a constant
default, a formatter and a validator. The pipeline calls the stage methods
below; they never touch any tag other than the definition's own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, MutableMapping, Optional

from services.inference.builder import Pathway
from services.osm_values import OsmValue
from services.tags import TAG_VALUE_TYPES, Tag, WorkingTags
from services.warnings import WarningCollector

logger = logging.getLogger(__name__)

FormatFn = Callable[[Tag, OsmValue, Mapping[Tag, OsmValue]], OsmValue]
ValidateFn = Callable[[OsmValue, Mapping[Tag, OsmValue], WarningCollector], None]


def no_format(tag: Tag, value: OsmValue, tags: Mapping[Tag, OsmValue]) -> OsmValue:
    return value


def no_validation(value: OsmValue, tags: Mapping[Tag, OsmValue], warnings: WarningCollector) -> None:
    return None


@dataclass(frozen=True)
class InferenceDefinition:
    tag: Tag
    default: OsmValue
    calculations: tuple[Pathway, ...] = ()
    fallbacks: tuple[Pathway, ...] = ()
    formatter: FormatFn = no_format
    validator: ValidateFn = no_validation

    def __post_init__(self):
        for pathway in self.calculations + self.fallbacks:
            if pathway.tag is not self.tag:
                raise ValueError(
                    f"Pathway for '{pathway.tag}' registered under definition for '{self.tag}'"
                )
        expected = TAG_VALUE_TYPES[self.tag]
        if not isinstance(self.default, expected):
            raise ValueError(
                f"Default for '{self.tag}' must be {expected.__name__}, "
                f"got {type(self.default).__name__}"
            )

    def _apply_first(self, pathways: tuple[Pathway, ...], tags: WorkingTags, inferred: set) -> bool:
        if tags[self.tag].is_set():
            return False

        for pathway in pathways:
            value = pathway.execute(tags)
            if value is None:
                continue
            tags[self.tag] = value.maybe()
            inferred.add(self.tag)
            logger.debug(f"Inferred {self.tag}={value} via '{pathway.description}'")
            return True
        return False

    def try_calculate(self, tags: WorkingTags, inferred: set) -> bool:
        """Apply the first calculation that fires. Returns whether the tag changed."""
        return self._apply_first(self.calculations, tags, inferred)

    def try_fallback(self, tags: WorkingTags, inferred: set) -> bool:
        """Apply the first fallback that fires. Returns whether the tag changed."""
        return self._apply_first(self.fallbacks, tags, inferred)

    def set_default(self, tags: WorkingTags, inferred: set) -> bool:
        if tags[self.tag].is_set():
            return False
        tags[self.tag] = self.default.maybe()
        inferred.add(self.tag)
        return True

    def format_value(
        self,
        tags: MutableMapping[Tag, OsmValue],
        snapshot: Optional[Mapping[Tag, OsmValue]] = None,
    ) -> None:
        """
        Replace this tag's value with its formatted form.

        The formatter reads `snapshot` (the record before any formatting) so
        the result does not depend on the order tags are formatted in.
        """
        source = tags if snapshot is None else snapshot
        tags[self.tag] = self.formatter(self.tag, source[self.tag], source)

    def validate_value(self, tags: Mapping[Tag, OsmValue], warnings: WarningCollector) -> None:
        self.validator(tags[self.tag], tags, warnings)
