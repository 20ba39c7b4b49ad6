"""Inflation index client.

Fetches monthly IPCA variations (BCB SGS series 433) for a contract window
and turns them into a cumulative multiplier table. Any failure yields an
empty result so the pricing editor can carry on without automatic
adjustment.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple
import logging
import time

import requests

from src.config import Config
from src.engine.calendar_utils import parse_year_month
from src.engine.index_adjustment import IndexTable, IndexVariation, build_index_multipliers

logger = logging.getLogger(__name__)

# Months fetched when no window is given
DEFAULT_LOOKBACK_MONTHS = 60


def _format_bcb_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def _window_dates(start, end, months: int = DEFAULT_LOOKBACK_MONTHS) -> Tuple[date, date]:
    """First day of `start` and last day of `end`, or a lookback from today."""
    start_ym = parse_year_month(start)
    end_ym = parse_year_month(end)
    if start_ym and end_ym:
        first = date(start_ym[0], start_ym[1], 1)
        next_month = date(end_ym[0] + end_ym[1] // 12, end_ym[1] % 12 + 1, 1)
        return first, next_month - timedelta(days=1)

    today = date.today()
    total = today.year * 12 + (today.month - 1) - months
    return date(total // 12, total % 12 + 1, 1), today


class IndexClient:
    """HTTP client for the index series with a simple in-process cache."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_seconds: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = base_url or Config.get_index_series_url()
        self.timeout = timeout if timeout is not None else Config.INDEX_TIMEOUT_SECONDS
        self.cache_seconds = cache_seconds if cache_seconds is not None else Config.INDEX_CACHE_SECONDS
        self.session = session or requests.Session()
        # (start, end) -> (fetched_at, variations)
        self._cache: Dict[Tuple[str, str], Tuple[float, List[IndexVariation]]] = {}

    def fetch_variations(self, start=None, end=None, force_refresh: bool = False) -> List[IndexVariation]:
        """Monthly variations for the window; empty list on any failure."""
        first, last = _window_dates(start, end)
        key = (_format_bcb_date(first), _format_bcb_date(last))

        if not force_refresh:
            cached = self._cache.get(key)
            if cached and time.monotonic() - cached[0] < self.cache_seconds:
                logger.debug(f"Using cached index variations for {key[0]} - {key[1]}")
                return cached[1]
        self._evict_expired()

        params = {"formato": "json", "dataInicial": key[0], "dataFinal": key[1]}
        logger.info(f"Fetching index variations {key[0]} - {key[1]}")
        try:
            response = self.session.get(
                self.url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Index service unavailable, continuing without adjustment: {e}")
            return []

        if not isinstance(payload, list) or not payload:
            logger.warning("Index service returned no data")
            return []

        variations = [
            IndexVariation(reference_date=str(item.get("data", "")), variation_pct=str(item.get("valor", "")))
            for item in payload
            if isinstance(item, dict)
        ]
        if variations:
            self._cache[key] = (time.monotonic(), variations)
        logger.info(f"Loaded {len(variations)} months of index data")
        return variations

    def get_index_table(self, start=None, end=None, force_refresh: bool = False) -> IndexTable:
        """Cumulative multiplier table for the window (empty if unavailable)."""
        variations = self.fetch_variations(start, end, force_refresh=force_refresh)
        return IndexTable(build_index_multipliers(variations))

    def _evict_expired(self) -> None:
        now = time.monotonic()
        for key in [key for key, (fetched_at, _) in self._cache.items() if now - fetched_at >= self.cache_seconds]:
            del self._cache[key]

    def clear_cache(self) -> None:
        self._cache.clear()


_client: Optional[IndexClient] = None


def get_index_client() -> IndexClient:
    """Get or create the shared index client."""
    global _client
    if _client is None:
        _client = IndexClient()
    return _client


def get_index_table(start=None, end=None) -> IndexTable:
    """Index table for a contract window using the shared client."""
    return get_index_client().get_index_table(start, end)
