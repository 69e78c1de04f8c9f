"""
CoinGecko Data Normalizer

Transforms a simple/price payload into MarketSnapshot objects.

Expected payload shape:
    {
      "bitcoin": {
        "usd": 50000.0,
        "usd_24h_change": 2.5,
        "usd_market_cap": 980000000000.0,
        "usd_24h_vol": 31000000000.0,
        "usd_24h_high": 51000.0,
        "usd_24h_low": 48800.0
      },
      ...
    }
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from live_data import symbols
from live_data.core.types import PayloadError
from live_data.models.market import MarketSnapshot

logger = logging.getLogger(__name__)


def _number(entry: dict[str, Any], key: str, default: float) -> float:
    """Read a numeric field, treating missing/null/zero as the default."""
    value = entry.get(key)
    if value is None or isinstance(value, bool):
        return default
    if not isinstance(value, (int, float)):
        raise PayloadError(f"Field {key} is not numeric", field=key, value=value)
    return float(value) or default


def normalize_quote(
    upstream_id: str,
    entry: Any,
    now: datetime,
    vs_currency: str = "usd",
) -> MarketSnapshot:
    """
    Transform one upstream entry into a MarketSnapshot.

    Raises:
        PayloadError: If the entry is not an object or has no usable price
    """
    if not isinstance(entry, dict):
        raise PayloadError(
            f"Expected object for {upstream_id}, got {type(entry).__name__}",
            field=upstream_id,
            value=entry,
        )

    price = entry.get(vs_currency)
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
        raise PayloadError(
            f"Missing or non-positive price for {upstream_id}",
            field=vs_currency,
            value=price,
        )
    price = float(price)

    symbol, name = symbols.resolve(upstream_id)

    try:
        return MarketSnapshot(
            symbol=symbol,
            name=name,
            price=price,
            change_24h_percent=_number(entry, f"{vs_currency}_24h_change", 0.0),
            market_cap=_number(entry, f"{vs_currency}_market_cap", 0.0),
            volume_24h=_number(entry, f"{vs_currency}_24h_vol", 0.0),
            high_24h=_number(entry, f"{vs_currency}_24h_high", price),
            low_24h=_number(entry, f"{vs_currency}_24h_low", price),
            last_updated=now,
        )
    except ValueError as e:
        raise PayloadError(str(e), field=upstream_id) from e


def normalize_quotes(
    payload: Any,
    now: datetime,
    vs_currency: str = "usd",
) -> dict[str, MarketSnapshot]:
    """
    Transform a full simple/price payload into snapshots keyed by symbol.

    Individual malformed entries are skipped with a warning so one bad
    asset does not sink the batch.

    Raises:
        PayloadError: If the payload itself is not a JSON object
    """
    if not isinstance(payload, dict):
        raise PayloadError(
            f"Expected object, got {type(payload).__name__}",
            field="payload",
            value=payload,
        )

    snapshots: dict[str, MarketSnapshot] = {}
    for upstream_id, entry in payload.items():
        try:
            snapshot = normalize_quote(upstream_id, entry, now, vs_currency)
        except PayloadError as e:
            logger.warning(
                "Skipping malformed quote",
                extra={"upstream_id": upstream_id, "error": str(e)},
            )
            continue
        snapshots[snapshot.symbol] = snapshot

    return snapshots
