"""
Field-level wire codecs.

The API does not use one serialization policy for every field.  Decimals
travel as strings, but some endpoints send plain JSON numbers; dates,
timestamps, clock times and epoch seconds each have their own format; and
enum casing differs from type to type.  Each rule is therefore attached to
the field's type with :data:`typing.Annotated` rather than configured
globally:

* :data:`StrictDecimal` only accepts a string token (order quantities).
* :data:`LenientDecimal` accepts a string or a JSON number.
* :data:`PlainDate` is ``YYYY-MM-DD``.
* :data:`Timestamp` is RFC 3339 with a mandatory offset.
* :data:`ClockTime` is ``HH:MM``.
* :data:`EpochSecond` is an integer count of seconds since the epoch.

All decimals are written back as plain decimal strings.

The module also holds :class:`WireModel`, the base for every request and
response model, and :func:`decode_value`, which turns pydantic validation
failures into :class:`~apca.errors.DecodeError`.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, Iterable, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, TypeAdapter
from pydantic import ValidationError

from .errors import DecodeError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^\d{2}:\d{2}$")
_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


class WireEnum(str, Enum):
    """Enum whose value is its exact wire spelling."""

    def __str__(self) -> str:
        return self.value


# Decimals -----------------------------------------------------------------


def _parse_decimal_text(value: str) -> Decimal:
    try:
        result = Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"not a decimal number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"not a finite decimal: {value!r}")
    return result


def strict_decimal(value: Any) -> Decimal:
    """Decode a decimal that must arrive as a string token."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        return _parse_decimal_text(value)
    raise ValueError(f"expected a decimal string, got {type(value).__name__}")


def lenient_decimal(value: Any) -> Decimal:
    """Decode a decimal sent either as a string or as a JSON number.

    Floats go through ``repr`` so the shortest round-tripping text is used
    instead of the binary expansion.
    """
    if isinstance(value, bool):
        raise ValueError("expected a decimal, got a boolean")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return _parse_decimal_text(repr(value))
    if isinstance(value, str):
        return _parse_decimal_text(value)
    raise ValueError(f"expected a decimal, got {type(value).__name__}")


def decimal_to_text(value: Decimal) -> str:
    return format(value, "f")


_decimal_serializer = PlainSerializer(decimal_to_text, return_type=str, when_used="json")

StrictDecimal = Annotated[Decimal, BeforeValidator(strict_decimal), _decimal_serializer]
LenientDecimal = Annotated[Decimal, BeforeValidator(lenient_decimal), _decimal_serializer]
# Outbound prices and quantities: callers may pass str, int or Decimal.
WireDecimal = LenientDecimal


# Dates and times ------------------------------------------------------------


def parse_plain_date(value: Any) -> date:
    if isinstance(value, datetime):
        raise ValueError("expected a calendar date, got a datetime")
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _DATE_RE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ValueError(f"expected YYYY-MM-DD, got {value!r}")


def parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp.

    Fractional seconds longer than microseconds (the API sometimes sends
    nanoseconds) are truncated.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("timestamp must carry a UTC offset")
        return value
    if isinstance(value, str):
        match = _RFC3339_RE.match(value)
        if match:
            fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
            offset = match.group("offset")
            if offset in ("Z", "z"):
                offset = "+00:00"
            try:
                return datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}.{fraction}{offset}")
            except ValueError:
                pass
    raise ValueError(f"expected an RFC 3339 timestamp, got {value!r}")


def format_timestamp(value: datetime) -> str:
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_clock_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str) and _CLOCK_RE.match(value):
        try:
            return datetime.strptime(value, "%H:%M").time()
        except ValueError:
            pass
    raise ValueError(f"expected HH:MM, got {value!r}")


def parse_epoch_second(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValueError(f"epoch seconds out of range: {value!r}") from None
    raise ValueError(f"expected integer epoch seconds, got {value!r}")


PlainDate = Annotated[
    date,
    BeforeValidator(parse_plain_date),
    PlainSerializer(lambda d: d.isoformat(), return_type=str, when_used="json"),
]
Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]
ClockTime = Annotated[
    time,
    BeforeValidator(parse_clock_time),
    PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json"),
]
EpochSecond = Annotated[
    datetime,
    BeforeValidator(parse_epoch_second),
    PlainSerializer(lambda ts: int(ts.timestamp()), return_type=int, when_used="json"),
]


# Query strings ------------------------------------------------------------


def comma_join(values: Iterable[Any]) -> str:
    """Join a multi-value filter into a single query parameter."""
    return ",".join(encode_query_value(v) for v in values)


def encode_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, Decimal):
        return decimal_to_text(value)
    if isinstance(value, (list, tuple)):
        return comma_join(value)
    return str(value)


# Models -------------------------------------------------------------------


class WireModel(BaseModel):
    """Base for every request and response model.

    Instances are frozen; derive a changed copy with ``model_copy(update=...)``.
    Unknown response fields are ignored so new API fields do not break
    decoding.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    # Fields written as an explicit ``null`` instead of being omitted.
    wire_nullable: ClassVar[FrozenSet[str]] = frozenset()

    def to_wire(self) -> Dict[str, Any]:
        """Encode to a JSON-ready dict, omitting unset optional fields."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for name in self.wire_nullable:
            data.setdefault(name, None)
        return data

    @classmethod
    def from_wire(cls, payload: Any):
        return decode_value(cls, payload)


def _field_name(loc: Iterable[Any]) -> Optional[str]:
    names = [part for part in loc if isinstance(part, str)]
    return names[-1] if names else None


def decode_error_from(exc: ValidationError) -> DecodeError:
    """Describe the first pydantic error as a :class:`DecodeError`."""
    err = exc.errors()[0]
    loc = tuple(err.get("loc", ()))
    path = ".".join(str(part) for part in loc) or "<root>"
    field = _field_name(loc) or "<root>"
    raw = err.get("input")
    ctx = err.get("ctx") or {}
    if err.get("type") in ("union_tag_invalid", "union_tag_not_found"):
        # Report the discriminator key and its token, not the whole object.
        field = str(ctx.get("discriminator", field)).strip("'")
        raw = ctx.get("tag")
    elif err.get("type") == "missing":
        raw = None
    return DecodeError(field, raw, reason=err.get("msg", ""), path=path)


def decode_value(shape: Any, payload: Any) -> Any:
    """Validate already-parsed JSON against ``shape``.

    :raises DecodeError: naming the first offending field and its raw token.
    """
    try:
        return TypeAdapter(shape).validate_python(payload)
    except ValidationError as exc:
        raise decode_error_from(exc) from exc
