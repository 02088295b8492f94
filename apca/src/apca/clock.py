"""Market clock."""

from __future__ import annotations

from typing import Any, ClassVar

from .codecs import Timestamp, WireModel
from .mapper import ApiRequest


class Clock(WireModel):
    timestamp: Timestamp
    is_open: bool
    next_open: Timestamp
    next_close: Timestamp


class GetClock(ApiRequest):
    response_type: ClassVar[Any] = Clock

    def endpoint(self) -> str:
        return "/clock"
