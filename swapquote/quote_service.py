"""
Quote lookup: validation, cache probe, and fetch on miss.
"""

import logging
import math
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

from swapquote.config import DEFAULT_SWAP_URL_TEMPLATE
from swapquote.errors import InvalidRequestError
from swapquote.models import Quote
from swapquote.quote_cache import QuoteCache
from swapquote.quote_fetcher import QuoteFetcher
from swapquote.tokens import resolve_address

logger = logging.getLogger(__name__)

_CacheKey = Tuple[str, str, str]


class QuoteService:
    """
    Serves quotes from the cache, fetching from the swap page on a miss.

    Concurrent misses for the same (input, output, amount) share one fetch:
    later callers wait for the first and then read its cached result.
    """

    def __init__(
        self,
        cache: QuoteCache,
        fetcher: QuoteFetcher,
        swap_url_template: str = DEFAULT_SWAP_URL_TEMPLATE
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.swap_url_template = swap_url_template
        # One lock per key ever requested, never removed, same as cache entries
        self._key_locks: Dict[_CacheKey, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    def get_quote(self, input_token: Optional[str], output_token: Optional[str], amount: Optional[str]) -> Quote:
        """
        Get a quote for swapping amount of input_token into output_token.

        Args:
            input_token: Input token symbol
            output_token: Output token symbol
            amount: Amount text, used verbatim as part of the cache key

        Returns:
            Cached or freshly scraped quote

        Raises:
            InvalidRequestError: On missing parameters, unknown tokens or a
                                 non-positive amount
            QuoteFetchError: If scraping fails
        """
        start_time = time.perf_counter()

        if not input_token or not output_token or not amount:
            raise InvalidRequestError("input, output, and amount parameters are required")

        from_address = resolve_address(input_token)
        if from_address is None:
            raise InvalidRequestError(f"unsupported input token: {input_token}")

        to_address = resolve_address(output_token)
        if to_address is None:
            raise InvalidRequestError(f"unsupported output token: {output_token}")

        _validate_amount(amount)

        quote = self.cache.get(input_token, output_token, amount)
        if quote is not None:
            logger.info("[CACHE HIT] Request processed in %.3fs", time.perf_counter() - start_time)
            return quote

        with self._lock_for((input_token, output_token, amount)):
            # Another request may have fetched this key while we waited
            quote = self.cache.get(input_token, output_token, amount)
            if quote is not None:
                logger.info("[CACHE HIT] Request processed in %.3fs", time.perf_counter() - start_time)
                return quote

            target_url = self.swap_url_template.format(from_address=from_address, to_address=to_address)
            try:
                quote = self.fetcher.fetch(input_token, output_token, amount, target_url)
            except Exception as e:
                logger.warning("Quote fetch failed for %s -> %s (%s): %s", input_token, output_token, amount, e)
                raise

            self.cache.set(input_token, output_token, amount, quote)

        logger.info("[CACHE MISS] Request processed in %.3fs", time.perf_counter() - start_time)
        return quote

    def _lock_for(self, key: _CacheKey) -> threading.Lock:
        with self._key_locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock


def _validate_amount(amount: str):
    try:
        value = Decimal(amount.strip())
    except InvalidOperation:
        raise InvalidRequestError(f"amount must be a positive number: {amount}")

    if not value.is_finite() or value <= 0:
        raise InvalidRequestError(f"amount must be a positive number: {amount}")

    # Quotes carry amounts as floats
    if not math.isfinite(float(value)):
        raise InvalidRequestError(f"amount is too large: {amount}")
