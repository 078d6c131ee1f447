"""Encoding between structured site attributes and editable display strings.

Each codec owns one field kind:

- thousands+unit: ``Measure(2500, "m")`` <-> ``"2,500 m"``
- integer: ``1500`` <-> ``"1,500"``
- dimension: ``Dimension(10, 20)`` <-> ``"10ft (H) x 20ft (W)"``
- currency: ``Decimal("1000")`` <-> ``"₱1,000.00 per month"``
- text: identity

``decode`` never raises for malformed input. It returns ``None`` ("no value")
and the codec's ``failure_policy`` tells the committer whether that means
keeping or removing the persisted value.
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from .models import Dimension, Number

NOT_AVAILABLE = "N/A"

_NON_DIGITS = re.compile(r"[^0-9]")
_NON_AMOUNT = re.compile(r"[^0-9.]")
_MEASURE_PATTERN = re.compile(r"^([0-9,]+)\s*(.*)$", re.DOTALL)
_MEASURE_INPUT_PATTERN = re.compile(r"^([0-9,]+)(\s+.*)?$", re.DOTALL)
_DIMENSION_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)ft\s*\(H\)\s*x\s*(\d+(?:\.\d+)?)ft\s*\(W\)", re.IGNORECASE
)


class FieldKind(str, Enum):
    THOUSANDS_UNIT = "thousands_unit"
    INTEGER = "integer"
    DIMENSION = "dimension"
    CURRENCY = "currency"
    TEXT = "text"


class FailurePolicy(str, Enum):
    """What committing an undecodable display string does to the stored value."""

    KEEP = "keep"
    REMOVE = "remove"


class Measure(NamedTuple):
    """Whole number with an optional unit suffix."""

    value: int
    unit: Optional[str] = None


def format_number(value: Number) -> str:
    """Render a dimension number without grouping or padding."""
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def parse_number(token: str) -> Optional[Number]:
    try:
        amount = Decimal(token)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    if "." not in token:
        return int(amount)
    return amount


class FieldCodec(ABC):
    """Encode/decode pair for one kind of editable field."""

    kind: FieldKind
    failure_policy = FailurePolicy.KEEP
    normalizes_input = False

    @abstractmethod
    def encode(self, value: Any) -> str:
        """Render a structured value as an editable display string."""
        pass

    @abstractmethod
    def decode(self, text: str) -> Any:
        """Parse a display string, returning None when it holds no value."""
        pass

    def normalize_input(self, raw: str) -> str:
        """Reformat raw keystrokes before they are stored in the session."""
        return raw


class IntegerCodec(FieldCodec):
    kind = FieldKind.INTEGER
    normalizes_input = True

    def encode(self, value: Optional[int]) -> str:
        if value is None:
            return NOT_AVAILABLE
        return f"{int(value):,}"

    def decode(self, text: str) -> Optional[int]:
        digits = _NON_DIGITS.sub("", text or "")
        if not digits:
            return None
        return int(digits)

    def normalize_input(self, raw: str) -> str:
        value = self.decode(raw)
        if value is None:
            return raw
        return self.encode(value)


class ThousandsUnitCodec(FieldCodec):
    """Grouped whole number followed by a free-form unit, e.g. ``"2,500 m"``."""

    kind = FieldKind.THOUSANDS_UNIT
    failure_policy = FailurePolicy.REMOVE
    normalizes_input = True

    def __init__(self):
        self._integer = IntegerCodec()

    def encode(self, value: Optional[Measure]) -> str:
        if value is None or value[0] is None:
            return NOT_AVAILABLE
        number, unit = value
        text = self._integer.encode(number)
        return f"{text} {unit}" if unit else text

    def decode(self, text: str) -> Optional[Measure]:
        match = _MEASURE_PATTERN.match((text or "").lstrip())
        if not match:
            return None
        number = self._integer.decode(match.group(1))
        if number is None:
            return None
        return Measure(number, match.group(2) or None)

    def normalize_input(self, raw: str) -> str:
        match = _MEASURE_INPUT_PATTERN.match(raw or "")
        if not match:
            return raw
        number = self._integer.decode(match.group(1))
        if number is None:
            return raw
        return self._integer.encode(number) + (match.group(2) or "")


class DimensionCodec(FieldCodec):
    kind = FieldKind.DIMENSION

    def encode(self, value: Optional[Dimension]) -> str:
        if value is None:
            return NOT_AVAILABLE
        parts = []
        if value.height is not None:
            parts.append(f"{format_number(value.height)}ft (H)")
        if value.width is not None:
            parts.append(f"{format_number(value.width)}ft (W)")
        return " x ".join(parts) or NOT_AVAILABLE

    def decode(self, text: str) -> Optional[Dimension]:
        match = _DIMENSION_PATTERN.search(text or "")
        if not match:
            return None
        height = parse_number(match.group(1))
        width = parse_number(match.group(2))
        if height is None or width is None:
            return None
        return Dimension(height=height, width=width)


class CurrencyCodec(FieldCodec):
    kind = FieldKind.CURRENCY

    def __init__(self, prefix: str = "₱", suffix: str = " per month"):
        self.prefix = prefix
        self.suffix = suffix

    def encode(self, value: Optional[Decimal]) -> str:
        if value is None:
            return NOT_AVAILABLE
        return f"{self.prefix}{Decimal(value):,.2f}{self.suffix}"

    def decode(self, text: str) -> Optional[Decimal]:
        text = (text or "").strip()
        prefix, suffix = self.prefix.strip(), self.suffix.strip()
        # Prefix and suffix may themselves contain digits or a point
        if prefix and text.startswith(prefix):
            text = text[len(prefix) :]
        if suffix and text.endswith(suffix):
            text = text[: -len(suffix)]
        cleaned = _NON_AMOUNT.sub("", text)
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return None
        if not amount.is_finite():
            return None
        return amount


class TextCodec(FieldCodec):
    kind = FieldKind.TEXT

    def __init__(self, strip: bool = False, failure_policy: FailurePolicy = FailurePolicy.KEEP):
        self.strip = strip
        self.failure_policy = failure_policy

    def encode(self, value: Optional[str]) -> str:
        return value or ""

    def decode(self, text: str) -> Optional[str]:
        if text is None or not text.strip():
            return None
        return text.strip() if self.strip else text


def build_site_codecs(currency_prefix: str = "₱", currency_suffix: str = " per month") -> Dict[str, FieldCodec]:
    """Return the codec for every editable site field, keyed by field name."""
    return {
        "name": TextCodec(),
        "location": TextCodec(),
        "type": TextCodec(),
        "dimension": DimensionCodec(),
        "traffic": ThousandsUnitCodec(),
        "location_visibility": ThousandsUnitCodec(),
        "price": CurrencyCodec(currency_prefix, currency_suffix),
        "additional_message": TextCodec(strip=True, failure_policy=FailurePolicy.REMOVE),
    }


SITE_CODECS = build_site_codecs()

_KIND_CODECS: Dict[FieldKind, FieldCodec] = {
    FieldKind.THOUSANDS_UNIT: ThousandsUnitCodec(),
    FieldKind.INTEGER: IntegerCodec(),
    FieldKind.DIMENSION: DimensionCodec(),
    FieldKind.CURRENCY: CurrencyCodec(),
    FieldKind.TEXT: TextCodec(),
}


def codec_for_kind(kind: FieldKind) -> FieldCodec:
    return _KIND_CODECS[FieldKind(kind)]


def codec_for_field(field_name: str, codecs: Optional[Dict[str, FieldCodec]] = None) -> FieldCodec:
    registry = codecs if codecs is not None else SITE_CODECS
    if field_name not in registry:
        raise KeyError(f"Not an editable site field: {field_name}")
    return registry[field_name]


def encode(field_name: str, value: Any, codecs: Optional[Dict[str, FieldCodec]] = None) -> str:
    return codec_for_field(field_name, codecs).encode(value)


def decode(field_name: str, text: str, codecs: Optional[Dict[str, FieldCodec]] = None) -> Any:
    return codec_for_field(field_name, codecs).decode(text)
