"""Account profile."""

from __future__ import annotations

import uuid
from typing import Any, ClassVar

from .codecs import LenientDecimal, Timestamp, WireEnum, WireModel
from .mapper import ApiRequest


class AccountStatus(WireEnum):
    """Lifecycle of a brokerage account.

    Accounts are normally ``ACTIVE``.  ``ACCOUNT_UPDATED`` is reported while
    personal details changed from the dashboard await approval, during
    which trading may be blocked.
    """

    ONBOARDING = "ONBOARDING"
    SUBMISSION_FAILED = "SUBMISSION_FAILED"
    SUBMITTED = "SUBMITTED"
    ACCOUNT_UPDATED = "ACCOUNT_UPDATED"
    APPROVAL_PENDING = "APPROVAL_PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"


class Account(WireModel):
    id: uuid.UUID
    account_number: str
    status: AccountStatus
    currency: str
    cash: LenientDecimal
    pattern_day_trader: bool
    trade_suspended_by_user: bool
    trading_blocked: bool
    transfers_blocked: bool
    account_blocked: bool
    created_at: Timestamp
    shorting_enabled: bool
    long_market_value: LenientDecimal
    short_market_value: LenientDecimal
    equity: LenientDecimal
    last_equity: LenientDecimal
    # 1 = cash account, 2 = reg T margin, 4 = pattern day trader
    multiplier: LenientDecimal
    buying_power: LenientDecimal
    initial_margin: LenientDecimal
    maintenance_margin: LenientDecimal
    sma: LenientDecimal
    daytrade_count: int
    last_maintenance_margin: LenientDecimal
    daytrading_buying_power: LenientDecimal
    regt_buying_power: LenientDecimal


class GetAccount(ApiRequest):
    response_type: ClassVar[Any] = Account

    def endpoint(self) -> str:
        return "/account"
