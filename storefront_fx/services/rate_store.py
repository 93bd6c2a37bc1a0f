"""Persistence of the latest rate per currency pair."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront_fx.models import ExchangeRate
from storefront_fx.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

Pair = tuple[str, str]


class StorageFailure(RuntimeError):
    """The repository could not commit a batch; nothing from it was applied."""

    def __init__(self, message: str, *, pairs: Sequence[Pair] = ()) -> None:
        super().__init__(message)
        self.pairs = tuple(pairs)


class InvalidRateRows(ValueError):
    """A batch contained rows that must never be persisted."""

    def __init__(self, pairs: Sequence[Pair]) -> None:
        labels = ", ".join(f"{base}->{target}" for base, target in pairs)
        super().__init__(f"Refusing to persist non-positive or non-finite rates: {labels}")
        self.pairs = tuple(pairs)


@dataclass(frozen=True)
class ExchangeRateRow:
    """Write model for one ordered currency pair."""

    from_currency: str
    to_currency: str
    rate: Decimal
    source: str
    last_updated: datetime

    @property
    def pair(self) -> Pair:
        return (self.from_currency.strip().upper(), self.to_currency.strip().upper())


@dataclass(frozen=True)
class ExchangeRateRecord:
    """Detached, read-only view of a stored exchange rate."""

    from_currency: str
    to_currency: str
    rate: Decimal
    source: str
    last_updated: datetime
    created_at: datetime | None
    updated_at: datetime | None


class RateRepository:
    """Upsert and lookup of `ExchangeRate` rows keyed by (from, to)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def upsert_many(self, rows: Iterable[ExchangeRateRow]) -> int:
        """Create or overwrite every row in a single transaction.

        Duplicate pairs collapse with the last occurrence winning. A batch
        containing an invalid rate is rejected before anything is written.

        Returns:
            The number of distinct pairs written.

        Raises:
            InvalidRateRows: If any row carries a non-positive or non-finite rate.
            StorageFailure: If the transaction could not be committed.
        """

        batch: dict[Pair, ExchangeRateRow] = {}
        for row in rows:
            batch[row.pair] = row

        invalid = [pair for pair, row in batch.items() if not _is_valid_rate(row.rate)]
        if invalid:
            raise InvalidRateRows(invalid)
        if not batch:
            return 0

        now = utc_now()
        try:
            with self._session_factory() as session, session.begin():
                existing = self._load_existing(session, batch.keys())
                for pair, row in batch.items():
                    model = existing.get(pair)
                    if model is None:
                        session.add(
                            ExchangeRate(
                                from_currency=pair[0],
                                to_currency=pair[1],
                                rate=Decimal(row.rate),
                                source=row.source,
                                last_updated=ensure_utc(row.last_updated),
                                created_at=now,
                                updated_at=now,
                            )
                        )
                    else:
                        model.rate = Decimal(row.rate)
                        model.source = row.source
                        model.last_updated = ensure_utc(row.last_updated)
                        model.updated_at = now
        except SQLAlchemyError as exc:
            logger.error("Failed to persist %s exchange rates: %s", len(batch), exc)
            raise StorageFailure(
                f"Could not commit {len(batch)} exchange rates: {exc}", pairs=list(batch)
            ) from exc

        logger.debug("Persisted %s exchange rates", len(batch))
        return len(batch)

    def get(self, from_currency: str, to_currency: str) -> ExchangeRateRecord | None:
        """Return the stored rate for a pair, or None when absent."""

        stmt = select(ExchangeRate).filter_by(
            from_currency=from_currency.strip().upper(),
            to_currency=to_currency.strip().upper(),
        )
        with self._session_factory() as session:
            model = session.execute(stmt).scalar_one_or_none()
            return _to_record(model) if model is not None else None

    def list(self, from_currency: str, to_currencies: Iterable[str]) -> list[ExchangeRateRecord]:
        """Return the current rate table: `from_currency` to each target, by target code."""

        targets = sorted({code.strip().upper() for code in to_currencies})
        if not targets:
            return []
        stmt = (
            select(ExchangeRate)
            .where(ExchangeRate.from_currency == from_currency.strip().upper())
            .where(ExchangeRate.to_currency.in_(targets))
            .order_by(ExchangeRate.to_currency.asc())
        )
        with self._session_factory() as session:
            return [_to_record(model) for model in session.execute(stmt).scalars()]

    def list_all(self) -> list[ExchangeRateRecord]:
        """Return every stored row ordered by target then source currency."""

        stmt = select(ExchangeRate).order_by(
            ExchangeRate.to_currency.asc(), ExchangeRate.from_currency.asc()
        )
        with self._session_factory() as session:
            return [_to_record(model) for model in session.execute(stmt).scalars()]

    @staticmethod
    def _load_existing(session: Session, pairs: Iterable[Pair]) -> dict[Pair, ExchangeRate]:
        wanted = set(pairs)
        sources = {base for base, _ in wanted}
        stmt = select(ExchangeRate).where(ExchangeRate.from_currency.in_(sources))
        existing: dict[Pair, ExchangeRate] = {}
        for model in session.execute(stmt).scalars():
            pair = (model.from_currency, model.to_currency)
            if pair in wanted:
                existing[pair] = model
        return existing


def _is_valid_rate(value: object) -> bool:
    try:
        rate = Decimal(str(value))
    except ArithmeticError:
        return False
    return rate.is_finite() and rate > 0


def _to_record(model: ExchangeRate) -> ExchangeRateRecord:
    return ExchangeRateRecord(
        from_currency=model.from_currency,
        to_currency=model.to_currency,
        rate=Decimal(model.rate),
        source=model.source,
        last_updated=ensure_utc(model.last_updated),
        created_at=ensure_utc(model.created_at) if model.created_at else None,
        updated_at=ensure_utc(model.updated_at) if model.updated_at else None,
    )
