"""
Headless browser scraper for the swap page.

Each fetch launches its own Chromium, types the requested amount into the
swap form, waits for the page to compute the output amount, and reads both
amounts back.
"""

import logging
import math
import time
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_FLOOR
from typing import Callable, Iterator, Optional, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from swapquote.errors import QuoteFetchError, QuoteParseError, QuoteTimeoutError
from swapquote.models import Quote, TokenAmount
from swapquote.tokens import output_decimals

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 30.0

# The page gives no signal when its price computation is done
SETTLE_DELAY_SECONDS = 5.0

_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
]

AMOUNT_INPUT_SELECTOR = 'input[data-sentry-element="Input"]'

# Output lookup strategies, tried in order. The first value that is neither
# empty nor "0" wins.
PRIMARY_OUTPUT_SCRIPT = (
    "Array.from(document.querySelectorAll('input[data-sentry-element=\"Input\"]'))"
    ".filter(el => el.placeholder === \"0.00\")[1]?.value || \"0\""
)
FALLBACK_OUTPUT_SCRIPT = (
    "document.querySelector('div[data-sentry-component=\"SwapInput\"]:nth-of-type(2) "
    "input[data-sentry-element=\"Input\"]')?.value || \"\""
)
OUTPUT_SCRIPTS = (PRIMARY_OUTPUT_SCRIPT, FALLBACK_OUTPUT_SCRIPT)


class _Deadline:
    """Remaining time budget for a single fetch."""

    def __init__(self, seconds: float, clock: Callable[[], float]):
        self._clock = clock
        self._expires_at = clock() + seconds
        self.seconds = seconds

    def remaining(self) -> float:
        return self._expires_at - self._clock()

    def check(self):
        if self.remaining() <= 0:
            raise QuoteTimeoutError(f"quote fetch exceeded {self.seconds:g}s deadline")

    def timeout_ms(self) -> float:
        """Remaining budget in milliseconds for a Playwright call."""
        self.check()
        # Playwright treats a timeout of 0 as "no timeout"
        return max(self.remaining() * 1000, 1)


def _is_usable(value: str) -> bool:
    return value not in ("", "0")


def parse_amount(text: str, label: str) -> Decimal:
    """
    Parse an amount read from the page.

    Args:
        text: Raw element value
        label: "input" or "output", used in the error message

    Returns:
        Parsed amount

    Raises:
        QuoteParseError: If the text is not a finite number
    """
    cleaned = (text or "").strip().replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise QuoteParseError(f"cannot parse {label} amount {text!r}")

    if not value.is_finite():
        raise QuoteParseError(f"cannot parse {label} amount {text!r}")
    return value


def truncate_amount(value: Decimal, token: str) -> Decimal:
    """
    Floor an amount to the decimal places used for the token.

    Raises:
        QuoteParseError: If the amount has too many digits to truncate
    """
    quantum = Decimal(1).scaleb(-output_decimals(token))
    try:
        return value.quantize(quantum, rounding=ROUND_FLOOR)
    except InvalidOperation:
        raise QuoteParseError(f"amount too large to truncate for {token}: {value}")


def _finite_float(value: Decimal, label: str) -> float:
    result = float(value)
    if not math.isfinite(result):
        raise QuoteParseError(f"{label} out of range: {value}")
    return result


def build_quote(
    input_token: str,
    output_token: str,
    input_text: str,
    output_text: str,
    now: Optional[datetime] = None
) -> Quote:
    """
    Turn the amounts read from the page into a Quote.

    The output amount is floored to the token's decimals, never rounded up.

    Raises:
        QuoteParseError: If either amount is unparseable, out of float range,
                         or the input is zero
    """
    input_amount = parse_amount(input_text, "input")
    output_amount = truncate_amount(parse_amount(output_text, "output"), output_token)

    if input_amount == 0:
        raise QuoteParseError(f"input amount read from page is zero: {input_text!r}")

    try:
        exchange_rate = output_amount / input_amount
    except DecimalException:
        raise QuoteParseError(f"exchange rate out of range: {output_text!r} / {input_text!r}")

    if now is None:
        now = datetime.now().astimezone()

    return Quote(
        input=TokenAmount(amount=_finite_float(input_amount, "input amount"), token=input_token),
        output=TokenAmount(amount=_finite_float(output_amount, "output amount"), token=output_token),
        exchange_rate=_finite_float(exchange_rate, "exchange rate"),
        timestamp=now.isoformat(timespec="seconds"),
    )


class QuoteFetcher:
    """
    Scrapes a quote from the swap page with a fresh headless browser.

    Nothing is shared between fetches, so concurrent calls each get their
    own browser process.
    """

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        headless: bool = True,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize fetcher.

        Args:
            timeout: Hard deadline in seconds for a whole fetch
            settle_delay: Seconds to wait after typing the amount before
                          reading the output
            headless: Run Chromium without a window
            clock: Monotonic clock in seconds
        """
        self.timeout = timeout
        self.settle_delay = settle_delay
        self.headless = headless
        self._clock = clock

    def fetch(self, input_token: str, output_token: str, amount: str, target_url: str) -> Quote:
        """
        Scrape a quote for the given amount.

        Args:
            input_token: Input token symbol
            output_token: Output token symbol, selects truncation decimals
            amount: Amount text to type into the swap form
            target_url: Swap page URL for the token pair

        Returns:
            Quote built from the page values

        Raises:
            QuoteTimeoutError: On deadline or browser timeout
            QuoteParseError: If a page value is not a usable number
            QuoteFetchError: On any other browser failure
        """
        deadline = _Deadline(self.timeout, self._clock)

        try:
            with self._browser_session(deadline) as page:
                input_text, output_text = self._scrape(page, amount, target_url, deadline)
        except PlaywrightTimeoutError as e:
            raise QuoteTimeoutError(str(e)) from e
        except PlaywrightError as e:
            raise QuoteFetchError(str(e)) from e

        logger.debug("Read input=%r output=%r from %s", input_text, output_text, target_url)
        return build_quote(input_token, output_token, input_text, output_text)

    @contextmanager
    def _browser_session(self, deadline: _Deadline) -> Iterator[Page]:
        """
        Launch a browser for one fetch and close it on exit.

        browser.close() runs even after the deadline has passed and is not
        bounded by it.
        """
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(
                headless=self.headless,
                args=_BROWSER_ARGS,
                timeout=deadline.timeout_ms(),
            )
            try:
                context = browser.new_context()
                yield context.new_page()
            finally:
                browser.close()

    def _scrape(self, page: Page, amount: str, target_url: str, deadline: _Deadline) -> Tuple[str, str]:
        """
        Drive the swap form and return the raw (input, output) values.
        """
        logger.debug("Navigating to %s", target_url)
        page.goto(target_url, timeout=deadline.timeout_ms())

        amount_input = page.locator(AMOUNT_INPUT_SELECTOR).first
        amount_input.wait_for(state="visible", timeout=deadline.timeout_ms())
        amount_input.fill("", timeout=deadline.timeout_ms())
        amount_input.press_sequentially(amount, timeout=deadline.timeout_ms())

        deadline.check()
        page.wait_for_timeout(min(self.settle_delay, deadline.remaining()) * 1000)

        input_text = amount_input.input_value(timeout=deadline.timeout_ms())
        deadline.check()
        output_text = self._read_output(page)
        # evaluate() takes no timeout, so a slow read still fails the deadline
        deadline.check()
        return input_text, output_text

    def _read_output(self, page: Page) -> str:
        """
        Read the output amount using OUTPUT_SCRIPTS in order.

        A failing primary script is an error; failing fallbacks are skipped.
        Returns the primary value when no strategy finds a usable one.
        """
        primary = ""
        for index, script in enumerate(OUTPUT_SCRIPTS):
            try:
                value = str(page.evaluate(script) or "").strip()
            except PlaywrightError as e:
                if index == 0:
                    raise
                logger.debug("Fallback output lookup failed: %s", e)
                continue

            if _is_usable(value):
                return value
            if index == 0:
                primary = value

        return primary or "0"
