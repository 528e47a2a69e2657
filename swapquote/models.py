"""
Quote data models.
"""

from pydantic import BaseModel


class TokenAmount(BaseModel):
    """Amount of a single token."""
    amount: float
    token: str

    class Config:
        frozen = True


class Quote(BaseModel):
    """
    Exchange rate quote scraped from the swap page.

    exchange_rate is output.amount / input.amount; timestamp is the
    RFC 3339 capture time.
    """
    input: TokenAmount
    output: TokenAmount
    exchange_rate: float
    timestamp: str

    class Config:
        frozen = True
