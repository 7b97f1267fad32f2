"""
Staged evaluation of the inference definitions over one way's tags.

Stages, in order:
1. calculate: exact pathways, repeated until a pass changes nothing
2. fallback: heuristic pathways, repeated until a pass changes nothing
3. default: constant value for anything still unset
4. format: every value rewritten to its most explicit form
5. validate: warnings for values inconsistent with other tags

Each changing pass sets at least one previously unset tag, so both
fixed-point loops finish within len(definitions) + 1 passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable

from services.errors import MissingTagError
from services.inference.definition import InferenceDefinition
from services.inference.registry import INFERENCE_DEFINITIONS
from services.osm_values import OsmValue
from services.tags import OUTPUT_TAGS, Tag, WorkingTags
from services.warnings import TagWarning, WarningCollector

logger = logging.getLogger(__name__)

StageFn = Callable[[InferenceDefinition, WorkingTags, set], bool]


@dataclass(frozen=True)
class InferenceOutcome:
    """Tags set by inference, plus the number of passes each loop took."""

    inferred: frozenset[Tag]
    calculation_passes: int
    fallback_passes: int


def _run_to_fixed_point(
    stage: str,
    step: StageFn,
    definitions: tuple[InferenceDefinition, ...],
    tags: WorkingTags,
    inferred: set,
) -> int:
    passes = 0
    changed = True
    while changed:
        passes += 1
        changed = False
        for definition in definitions:
            if step(definition, tags, inferred):
                changed = True

    logger.debug(f"{stage} stage reached a fixed point after {passes} pass(es)")
    return passes


def perform_inferences(
    tags: WorkingTags,
    definitions: tuple[InferenceDefinition, ...] = INFERENCE_DEFINITIONS,
) -> InferenceOutcome:
    """
    Fill every unset tag in place.

    Args:
        tags: Working tags parsed from the raw way; mutated in place.
        definitions: Inference definitions to evaluate, in order.

    Returns:
        InferenceOutcome naming the tags whose values were not taken from input.
    """
    inferred: set[Tag] = set()

    calculation_passes = _run_to_fixed_point(
        "calculate", InferenceDefinition.try_calculate, definitions, tags, inferred
    )
    fallback_passes = _run_to_fixed_point(
        "fallback", InferenceDefinition.try_fallback, definitions, tags, inferred
    )

    for definition in definitions:
        if definition.set_default(tags, inferred):
            logger.debug(f"Defaulted {definition.tag}={definition.default}")

    return InferenceOutcome(frozenset(inferred), calculation_passes, fallback_passes)


def finalize(tags: WorkingTags) -> dict[Tag, OsmValue]:
    """
    Unwrap the working tags into definite values for every output tag.

    Raises:
        MissingTagError: An output tag is still unset, meaning a definition
            is missing or broken.
    """
    final: dict[Tag, OsmValue] = {}
    for tag in OUTPUT_TAGS:
        maybe = tags[tag]
        if not maybe.is_set():
            raise MissingTagError(tag.osm_key)
        final[tag] = maybe.get()
    return final


def perform_transforms(
    tags: dict[Tag, OsmValue],
    definitions: tuple[InferenceDefinition, ...] = INFERENCE_DEFINITIONS,
) -> dict[Tag, tuple[TagWarning, ...]]:
    """
    Format every value in place, then validate the formatted record.

    Returns:
        Warnings per tag; tags without warnings are omitted.
    """
    snapshot = MappingProxyType(dict(tags))
    for definition in definitions:
        definition.format_value(tags, snapshot)

    warnings = WarningCollector()
    for definition in definitions:
        definition.validate_value(tags, warnings)

    if len(warnings):
        logger.debug(f"Validation raised {len(warnings)} warning(s)")
    return warnings.as_mapping()
