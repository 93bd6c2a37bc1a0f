"""Service layer modules."""

from .currency_registry import CurrencyDefinition, CurrencyRegistry, init_registry
from .exchange_rates import ExchangeRateService, create_service, get_service, init_service
from .formatting import format_amount, format_price_range
from .freshness import FreshnessEvaluator
from .fx_conversion import (
    ConversionError,
    PricedItem,
    PriceRange,
    RateNotFound,
    RateTable,
    convert,
    price_range,
    round_amount,
)
from .rate_store import (
    ExchangeRateRecord,
    ExchangeRateRow,
    InvalidRateRows,
    RateRepository,
    StorageFailure,
)
from .scheduler import RefreshScheduler, init_scheduler, parse_refresh_times
from .synchronizer import RateSynchronizer, SkippedQuote, SyncResult
