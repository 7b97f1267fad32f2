"""
Errors raised while turning raw way tags into a compiled record.

- InvalidEncodingError: a raw string does not match its value grammar
- MissingTagError: a tag is still unset after the default stage
"""

from typing import Optional


class TagError(Exception):
    """Base class for tag processing errors."""


class InvalidEncodingError(TagError):
    """A raw value cannot be decoded into (or constructed as) its value type."""

    def __init__(self, value_type: str, value, key: Optional[str] = None):
        self.value_type = value_type
        self.value = value
        self.key = key
        if key:
            message = f"Value '{value}' of tag '{key}' is not valid for type '{value_type}'."
        else:
            message = f"Value '{value}' is not valid for type '{value_type}'."
        super().__init__(message)


class MissingTagError(TagError):
    """A tag has no value after inference; the inference definitions are incomplete."""

    def __init__(self, tag: Optional[str] = None):
        self.tag = tag
        if tag:
            message = f"Tag '{tag}' is missing and could not be inferred."
        else:
            message = "Value is unset."
        super().__init__(message)
