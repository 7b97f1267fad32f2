"""
Tag inference for way records.

- builder: immutable pathway builder (`infer(tag).assert_is_set(...).complete(fn)`)
- definition: per-tag bundle of calculations, fallbacks, default, formatter, validator
- registry: the definitions for every output tag
- pipeline: calculate -> fallback -> default, then format -> validate
"""

from services.inference.builder import Pathway, PathwayBuilder, infer
from services.inference.definition import InferenceDefinition
from services.inference.pipeline import (
    InferenceOutcome,
    finalize,
    perform_inferences,
    perform_transforms,
)
from services.inference.registry import INFERENCE_DEFINITIONS

__all__ = [
    "Pathway",
    "PathwayBuilder",
    "infer",
    "InferenceDefinition",
    "InferenceOutcome",
    "finalize",
    "perform_inferences",
    "perform_transforms",
    "INFERENCE_DEFINITIONS",
]
