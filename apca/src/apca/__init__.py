"""
Typed asynchronous client for the Alpaca v2 trading API.

Every endpoint is a request class (``GetAccount``, ``SubmitOrder``,
``GetAccountActivities``, ...).  A request is encoded into method, path,
query and body, sent through a transport, and the response is decoded into
pydantic models with exact ``Decimal`` quantities and timezone-aware
timestamps.  The package is organised bottom-up:

* ``identifiers`` and ``codecs`` hold the wire formats of single values.
* ``orders`` holds the order type and order class unions.
* ``mapper`` and the endpoint modules describe the requests.
* ``pagination`` walks cursor-paginated endpoints.
* ``client``, ``transport``, ``auth_providers`` and ``config`` connect it
  all to the network.
"""

from .account import Account, AccountStatus, GetAccount  # noqa: F401
from .account_activities import (  # noqa: F401
    Activity,
    ActivitySide,
    ActivityType,
    FillType,
    GetAccountActivities,
    GetAccountActivitiesByType,
    NonTradeActivity,
    TradeActivity,
    decode_activity,
)
from .account_configurations import (  # noqa: F401
    AccountConfigurations,
    DtbpCheck,
    GetAccountConfigurations,
    PatchAccountConfigurations,
    TradeConfirmEmail,
)
from .assets import Asset, AssetClass, AssetStatus, Exchange, GetAsset, GetAssets  # noqa: F401
from .auth_providers import AuthProvider, BearerAuthProvider, HeaderAuthProvider  # noqa: F401
from .calendar import Calendar, GetCalendar  # noqa: F401
from .client import AlpacaClient, client_from_env, client_with_url, live_client, paper_client  # noqa: F401
from .clock import Clock, GetClock  # noqa: F401
from .config import Settings, configure_logging  # noqa: F401
from .errors import (  # noqa: F401
    ApcaError,
    DecodeError,
    HttpStatusError,
    OrderValidationError,
    RequestValidationError,
    UnhandledVariantError,
    UntaggedUnionError,
)
from .identifiers import AssetId, Identifier, Symbol, format_identifier, parse_identifier  # noqa: F401
from .mapper import (  # noqa: F401
    EMPTY_RESPONSE,
    ApiRequest,
    EmptyResponse,
    EncodedRequest,
    Sort,
    Transport,
    decode_response,
    encode_request,
)
from .orders import (  # noqa: F401
    Bracket,
    CancelAllOrders,
    CancellationAttempt,
    CancelOrder,
    GetOrder,
    GetOrders,
    Limit,
    Market,
    OneCancelsOther,
    OneTriggersOther,
    Order,
    OrderClassTag,
    OrderReplacement,
    OrderSpec,
    OrderStatus,
    OrderTicket,
    OrderTypeTag,
    QueryOrderStatus,
    ReplaceOrder,
    Side,
    Simple,
    Stop,
    StopLimit,
    StopLossSpec,
    SubmitOrder,
    TakeProfitSpec,
    TimeInForce,
    TrailingStop,
)
from .pagination import DEFAULT_PAGE_SIZE, Page, PaginationCursor, PaginationState, Paginator  # noqa: F401
from .portfolio_history import GetPortfolioHistory, Period, PeriodUnit, PortfolioHistory, Timeframe  # noqa: F401
from .positions import (  # noqa: F401
    ClosePosition,
    CloseAllPositions,
    GetPosition,
    GetPositions,
    Position,
    PositionSide,
)
from .transport import HttpTransport  # noqa: F401
from .watchlists import (  # noqa: F401
    AddAssetToWatchlist,
    CreateWatchlist,
    DeleteWatchlist,
    GetWatchlist,
    GetWatchlists,
    RemoveAssetFromWatchlist,
    UpdateWatchlist,
    Watchlist,
)

__version__ = "0.1.0"
