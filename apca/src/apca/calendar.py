"""Market calendar: trading days with their open and close times."""

from __future__ import annotations

from typing import Any, ClassVar, List, Optional

from .codecs import ClockTime, PlainDate, WireModel
from .errors import RequestValidationError
from .mapper import ApiRequest


class Calendar(WireModel):
    date: PlainDate
    open: ClockTime
    close: ClockTime


class GetCalendar(ApiRequest):
    """Trading days between ``start`` and ``end``, both inclusive.

    Unset bounds are left out of the query and the API applies its own.
    """

    response_type: ClassVar[Any] = List[Calendar]
    location: ClassVar[str] = "query"

    start: Optional[PlainDate] = None
    end: Optional[PlainDate] = None

    def endpoint(self) -> str:
        return "/calendar"

    def check(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise RequestValidationError("start", "start is after end")
