"""
Typed containers for OpenStreetMap tag values.

Each container knows how to decode the database's string grammar and how to
encode itself back to its canonical form:
- OsmBoolean: "yes" / "no"
- OsmUnsignedInteger: decimal digits, with arithmetic for lane maths
- OsmString: any string
- OsmArray: "a;b;c" (empty elements are kept, "a;;c" has three elements)
- OsmDoubleArray: "a;b|c" (rows split on "|", each row is an OsmArray)

All containers are immutable and compare by decoded value, so
OsmUnsignedInteger.parse("2") == OsmUnsignedInteger(2) == 2.

OsmMaybe distinguishes "not yet known" from a known value that happens to
encode to the empty string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from config import (
    ARRAY_DELIMITER,
    BOOLEAN_FALSE,
    BOOLEAN_TRUE,
    DOUBLE_ARRAY_DELIMITER,
)
from services.errors import InvalidEncodingError, MissingTagError

_UNSIGNED_INTEGER_PATTERN = re.compile(r"^[0-9]+$")


@dataclass(frozen=True, eq=False)
class OsmValue:
    """Base container for a value with an OpenStreetMap string representation."""

    inner: object

    type_name = "value"

    def get(self):
        """Retrieve the underlying Python value."""
        return self.inner

    def maybe(self) -> OsmMaybe:
        """Wrap this value as a set OsmMaybe."""
        return OsmMaybe(self)

    @classmethod
    def parse(cls, raw: str) -> OsmValue:
        """Decode an OpenStreetMap string into this container type."""
        raise NotImplementedError

    @classmethod
    def _is_inner(cls, other) -> bool:
        """Whether a bare Python value can be compared against the inner value."""
        return False

    def __str__(self) -> str:
        raise NotImplementedError

    def __eq__(self, other):
        if isinstance(other, OsmValue):
            return type(self) is type(other) and self.inner == other.inner
        if self._is_inner(other):
            return self.inner == other
        return NotImplemented

    def __hash__(self):
        return hash((type(self).__name__, self.inner))


def _require_str(value_type: str, raw) -> str:
    if not isinstance(raw, str):
        raise InvalidEncodingError(value_type, raw)
    return raw


@dataclass(frozen=True, eq=False)
class OsmBoolean(OsmValue):
    """Container for `yes` / `no` values."""

    inner: bool

    type_name = "boolean"

    def __post_init__(self):
        if not isinstance(self.inner, bool):
            raise InvalidEncodingError(self.type_name, self.inner)

    @classmethod
    def parse(cls, raw: str) -> OsmBoolean:
        raw = _require_str(cls.type_name, raw)
        if raw == BOOLEAN_TRUE:
            return cls(True)
        if raw == BOOLEAN_FALSE:
            return cls(False)
        raise InvalidEncodingError(cls.type_name, raw)

    @classmethod
    def _is_inner(cls, other) -> bool:
        return isinstance(other, bool)

    def __str__(self) -> str:
        return BOOLEAN_TRUE if self.inner else BOOLEAN_FALSE


OsmBoolean.TRUE = OsmBoolean(True)
OsmBoolean.FALSE = OsmBoolean(False)


@dataclass(frozen=True, eq=False)
class OsmUnsignedInteger(OsmValue):
    """
    Container for non-negative integers such as lane counts.

    Arithmetic returns new containers. A result below zero is not a valid
    unsigned integer and raises InvalidEncodingError, exactly like
    constructing one with a negative argument.
    """

    inner: int

    type_name = "unsigned integer"

    def __post_init__(self):
        if isinstance(self.inner, bool) or not isinstance(self.inner, int) or self.inner < 0:
            raise InvalidEncodingError(self.type_name, self.inner)

    @classmethod
    def parse(cls, raw: str) -> OsmUnsignedInteger:
        stripped = _require_str(cls.type_name, raw).strip()
        if not _UNSIGNED_INTEGER_PATTERN.match(stripped):
            raise InvalidEncodingError(cls.type_name, raw)
        return cls(int(stripped))

    @classmethod
    def _is_inner(cls, other) -> bool:
        return isinstance(other, int) and not isinstance(other, bool)

    @staticmethod
    def _operand(other) -> int:
        if isinstance(other, OsmUnsignedInteger):
            return other.inner
        return other

    def add(self, other) -> OsmUnsignedInteger:
        return OsmUnsignedInteger(self.inner + self._operand(other))

    def subtract(self, other) -> OsmUnsignedInteger:
        return OsmUnsignedInteger(self.inner - self._operand(other))

    def multiply(self, other) -> OsmUnsignedInteger:
        return OsmUnsignedInteger(self.inner * self._operand(other))

    def _divisor(self, other) -> int:
        divisor = self._operand(other)
        if divisor == 0:
            raise InvalidEncodingError(self.type_name, f"{self.inner} / 0")
        return divisor

    def divide(self, other) -> OsmUnsignedInteger:
        """Integer (floor) division. A zero divisor raises InvalidEncodingError."""
        return OsmUnsignedInteger(self.inner // self._divisor(other))

    def modulo(self, other) -> OsmUnsignedInteger:
        return OsmUnsignedInteger(self.inner % self._divisor(other))

    def __str__(self) -> str:
        return str(self.inner)


@dataclass(frozen=True, eq=False)
class OsmString(OsmValue):
    """Container for free-text values."""

    inner: str

    type_name = "string"

    def __post_init__(self):
        if not isinstance(self.inner, str):
            raise InvalidEncodingError(self.type_name, self.inner)

    @classmethod
    def parse(cls, raw: str) -> OsmString:
        return cls(_require_str(cls.type_name, raw))

    @classmethod
    def _is_inner(cls, other) -> bool:
        return isinstance(other, str)

    def __str__(self) -> str:
        return self.inner


@dataclass(frozen=True, eq=False)
class OsmArray(OsmValue):
    """
    Container for a delimited list of values, e.g. `left;through`.

    Elements whose encoding contains the delimiter are rejected, since they
    could not be decoded back into the same element.
    """

    inner: tuple
    element_type: type = OsmString
    delimiter: str = ARRAY_DELIMITER

    type_name = "array"

    def __post_init__(self):
        values = tuple(self.inner)
        for value in values:
            if not isinstance(value, self.element_type):
                raise InvalidEncodingError(self.type_name, value)
            if self.delimiter in str(value):
                raise InvalidEncodingError(self.type_name, str(value))
        object.__setattr__(self, "inner", values)

    @classmethod
    def parse(
        cls,
        raw: str,
        element_type: type = OsmString,
        delimiter: str = ARRAY_DELIMITER,
    ) -> OsmArray:
        raw = _require_str(cls.type_name, raw)
        values = tuple(element_type.parse(part) for part in raw.split(delimiter))
        return cls(values, element_type, delimiter)

    @classmethod
    def of_length(
        cls,
        length: int,
        raw: str = "",
        element_type: type = OsmString,
        delimiter: str = ARRAY_DELIMITER,
    ) -> OsmArray:
        """Create an array of `length` copies of one decoded value."""
        return cls(tuple(element_type.parse(raw) for _ in range(length)), element_type, delimiter)

    def map(self, map_fn: Callable[[OsmValue], OsmValue], element_type: Optional[type] = None) -> OsmArray:
        """Return a new array with `map_fn` applied to every element."""
        return OsmArray(
            tuple(map_fn(value) for value in self.inner),
            element_type or self.element_type,
            self.delimiter,
        )

    def as_list(self) -> list[str]:
        return [str(value) for value in self.inner]

    def __len__(self) -> int:
        return len(self.inner)

    def __iter__(self) -> Iterator[OsmValue]:
        return iter(self.inner)

    def __getitem__(self, index: int) -> OsmValue:
        return self.inner[index]

    def __str__(self) -> str:
        return self.delimiter.join(str(value) for value in self.inner)


@dataclass(frozen=True, eq=False)
class OsmDoubleArray(OsmValue):
    """
    Container for a two-level delimited list, e.g. `left;through|right`.

    The outer delimiter separates rows (one row per lane for turn markings);
    each row is an OsmArray using the inner delimiter. Rows may be passed as
    OsmArray instances or as plain sequences of element values.
    """

    inner: tuple
    element_type: type = OsmString
    inner_delimiter: str = ARRAY_DELIMITER
    outer_delimiter: str = DOUBLE_ARRAY_DELIMITER

    type_name = "double array"

    def __post_init__(self):
        rows = []
        for row in self.inner:
            if not isinstance(row, OsmArray):
                row = OsmArray(tuple(row), self.element_type, self.inner_delimiter)
            if row.element_type is not self.element_type or row.delimiter != self.inner_delimiter:
                raise InvalidEncodingError(self.type_name, str(row))
            if self.outer_delimiter in str(row):
                raise InvalidEncodingError(self.type_name, str(row))
            rows.append(row)
        object.__setattr__(self, "inner", tuple(rows))

    @classmethod
    def parse(
        cls,
        raw: str,
        element_type: type = OsmString,
        inner_delimiter: str = ARRAY_DELIMITER,
        outer_delimiter: str = DOUBLE_ARRAY_DELIMITER,
    ) -> OsmDoubleArray:
        raw = _require_str(cls.type_name, raw)
        rows = tuple(
            OsmArray.parse(part, element_type, inner_delimiter)
            for part in raw.split(outer_delimiter)
        )
        return cls(rows, element_type, inner_delimiter, outer_delimiter)

    @classmethod
    def of_length(cls, length: int, raw: str = "", element_type: type = OsmString) -> OsmDoubleArray:
        """Create `length` rows, each holding a single decoded `raw` value."""
        rows = tuple(OsmArray.of_length(1, raw, element_type) for _ in range(length))
        return cls(rows, element_type)

    @classmethod
    def empty(cls, element_type: type = OsmString) -> OsmDoubleArray:
        return cls((), element_type)

    def map_rows(self, map_fn: Callable[[OsmArray], OsmArray]) -> OsmDoubleArray:
        """Return a new double array with `map_fn` applied to every row."""
        return OsmDoubleArray(
            tuple(map_fn(row) for row in self.inner),
            self.element_type,
            self.inner_delimiter,
            self.outer_delimiter,
        )

    def as_lists(self) -> list[list[str]]:
        return [row.as_list() for row in self.inner]

    def __len__(self) -> int:
        return len(self.inner)

    def __iter__(self) -> Iterator[OsmArray]:
        return iter(self.inner)

    def __getitem__(self, index: int) -> OsmArray:
        return self.inner[index]

    def __str__(self) -> str:
        return self.outer_delimiter.join(str(row) for row in self.inner)


@dataclass(frozen=True)
class OsmMaybe:
    """A tag value that is either set (holds an OsmValue) or unset."""

    value: Optional[OsmValue] = None

    def is_set(self) -> bool:
        return self.value is not None

    def get(self) -> OsmValue:
        """Retrieve the held value; only valid after checking is_set()."""
        if self.value is None:
            raise MissingTagError()
        return self.value


UNSET = OsmMaybe()


def parse_optional(raw: Optional[str], parser: Callable[[str], OsmValue]) -> OsmMaybe:
    """Decode a possibly-missing raw string; a missing string stays unset."""
    if raw is None:
        return UNSET
    return parser(raw).maybe()
