"""
Errors raised while producing a quote.
"""


class QuoteError(Exception):
    """Base class for quote errors."""
    pass


class InvalidRequestError(QuoteError):
    """Request is missing a parameter or names an unsupported token."""
    pass


class QuoteFetchError(QuoteError):
    """Scraping the swap page failed."""
    pass


class QuoteTimeoutError(QuoteFetchError):
    """Fetch deadline elapsed before the page produced a quote."""
    pass


class QuoteParseError(QuoteFetchError):
    """Amount text read from the page is not a usable number."""
    pass
