"""SQLAlchemy ORM models for persisted exchange rates."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, localcontext

from sqlalchemy import DateTime, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from storefront_fx.database import Base

# Decimals with at most this many significant digits survive a trip through
# an IEEE double unchanged.
FLOAT_SAFE_DIGITS = 15


class RateNumeric(TypeDecorator):
    """Exchange rate column wide enough for inverse rates of large quotes.

    Dialects without a native decimal type (SQLite) hand back floats, which
    SQLAlchemy pads out to the column scale. Those values are trimmed to
    ``FLOAT_SAFE_DIGITS`` significant digits so provider quotes read back
    exactly as written.
    """

    impl = Numeric
    cache_ok = True

    def process_result_value(self, value, dialect):
        if value is None or dialect.supports_native_decimal:
            return value
        with localcontext() as ctx:
            ctx.prec = FLOAT_SAFE_DIGITS
            return +Decimal(value)


class ExchangeRate(Base):
    """Latest known rate for one ordered currency pair.

    ``rate`` means one unit of ``from_currency`` equals ``rate`` units of
    ``to_currency``. ``last_updated`` is the provider's quote time while
    ``updated_at`` records the local write.
    """

    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rates_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_currency: Mapped[str] = mapped_column(String(12), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(12), nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateNumeric(38, 20), nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<ExchangeRate {self.from_currency}->{self.to_currency} "
            f"rate={self.rate} source={self.source}>"
        )
