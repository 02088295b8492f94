"""Account configuration: trading and notification settings."""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from .codecs import WireEnum, WireModel
from .errors import RequestValidationError
from .mapper import ApiRequest


class DtbpCheck(WireEnum):
    """When day-trading buying power is checked."""

    BOTH = "both"
    ENTRY = "entry"
    EXIT = "exit"


class TradeConfirmEmail(WireEnum):
    ALL = "all"
    NONE = "none"


class AccountConfigurations(WireModel):
    dtbp_check: DtbpCheck = DtbpCheck.ENTRY
    trade_confirm_email: TradeConfirmEmail = TradeConfirmEmail.ALL
    suspend_trade: bool = False
    no_shorting: bool = False


class GetAccountConfigurations(ApiRequest):
    response_type: ClassVar[Any] = AccountConfigurations

    def endpoint(self) -> str:
        return "/account/configurations"


class PatchAccountConfigurations(ApiRequest):
    """Change some settings; unset fields are left out of the body."""

    method: ClassVar[str] = "PATCH"
    response_type: ClassVar[Any] = AccountConfigurations
    location: ClassVar[str] = "body"

    dtbp_check: Optional[DtbpCheck] = None
    trade_confirm_email: Optional[TradeConfirmEmail] = None
    suspend_trade: Optional[bool] = None
    no_shorting: Optional[bool] = None

    def endpoint(self) -> str:
        return "/account/configurations"

    def check(self) -> None:
        if not self.params():
            raise RequestValidationError("configurations", "no setting to change")
