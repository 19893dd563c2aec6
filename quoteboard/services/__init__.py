"""Service layer modules."""

from .currency_registry import (
    REFERENCE_CURRENCY,
    Currency,
    CurrencyRegistry,
    init_registry,
    registry,
)
from .quote_store import QuoteStore
from .rate_table import RateTable, build_rate_table
from .fx_conversion import ConversionError, convert_amount, cross_rate
from .refresh_controller import (
    DEFAULT_COOLDOWN_SECONDS,
    RefreshController,
    RefreshDecision,
    RefreshState,
    ServedQuotes,
    evaluate_refresh_state,
    init_refresh_controller,
)
