from __future__ import annotations
import math
from dataclasses import dataclass
from decimal import Decimal
from enum import IntFlag
from typing import Any, Dict

from .keywords import TYPE_ANY, TYPE_BOOL, TYPE_FLOAT, TYPE_INT, TYPE_STRING


class AliceType(IntFlag):
    """Type bits. A concrete type is a single bit, `ANY` is their union."""
    STRING = 1
    BOOL = 2
    INT = 4
    FLOAT = 8
    ANY = STRING | BOOL | INT | FLOAT

    def accepts(self, actual: "AliceType") -> bool:
        return actual & self == actual

    def __str__(self) -> str:
        return type_name(self)


_NAME_TO_TYPE: Dict[str, AliceType] = {
    TYPE_STRING: AliceType.STRING,
    TYPE_BOOL: AliceType.BOOL,
    TYPE_INT: AliceType.INT,
    TYPE_FLOAT: AliceType.FLOAT,
    TYPE_ANY: AliceType.ANY,
}
_TYPE_TO_NAME: Dict[int, str] = {int(t): n for n, t in _NAME_TO_TYPE.items()}


def type_for_name(name: str) -> AliceType:
    """Look up a type by its source name; raises KeyError for unknown names."""
    return _NAME_TO_TYPE[name]


def type_name(t: int) -> str:
    if int(t) in _TYPE_TO_NAME:
        return _TYPE_TO_NAME[int(t)]
    parts = [n for n, bit in _NAME_TO_TYPE.items() if bit != AliceType.ANY and bit & t]
    return "|".join(parts) or "none"


def format_float(f: float) -> str:
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "inf" if f > 0 else "-inf"
    if f.is_integer():
        if f == 0 and math.copysign(1.0, f) < 0:
            return "-0"
        return str(int(f))
    # shortest round-trip digits, never in exponent form
    return format(Decimal(repr(f)), "f")


@dataclass(frozen=True)
class Value:
    """A runtime value together with its concrete type."""
    type: AliceType
    data: Any

    def __str__(self) -> str:
        if self.type == AliceType.BOOL:
            return "true" if self.data else "false"
        if self.type == AliceType.FLOAT:
            return format_float(self.data)
        return str(self.data)


def int_value(n: int) -> Value:
    return Value(AliceType.INT, n)

def float_value(f: float) -> Value:
    return Value(AliceType.FLOAT, f)

def string_value(s: str) -> Value:
    return Value(AliceType.STRING, s)

def bool_value(b: bool) -> Value:
    return Value(AliceType.BOOL, bool(b))


def convert(value: Value, target: AliceType) -> Value:
    """Convert a literal for an `@` conversion.

    Raises ValueError when the conversion is not defined for the pair of
    types or the literal text cannot be read as the target type.
    """
    if target == AliceType.ANY or target == value.type:
        return value
    src = value.type
    if target == AliceType.STRING:
        return string_value(str(value))
    if target == AliceType.INT:
        if src == AliceType.FLOAT:
            if not math.isfinite(value.data):
                raise ValueError(f"cannot convert {value} to int")
            return int_value(int(value.data))
        if src == AliceType.STRING:
            text = value.data.strip()
            try:
                return int_value(int(text, 10))
            except ValueError:
                # 0x and 0b prefixes
                return int_value(int(text, 0))
    if target == AliceType.FLOAT:
        if src == AliceType.INT:
            return float_value(float(value.data))
        if src == AliceType.STRING:
            return float_value(float(value.data.strip()))
    raise ValueError(f"cannot convert {type_name(src)} literal to {type_name(target)}")
