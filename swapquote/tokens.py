"""
Token registry for the Kuru swap page.

Maps token symbols to on-chain addresses and to the number of decimals
a quoted output amount is truncated to.
"""

from typing import Dict, Optional

MON_ADDRESS = "0x0000000000000000000000000000000000000000"
DAK_ADDRESS = "0x0F0BDEbF0F83cD1EE3974779Bcb7315f9808c714"
LBTC_ADDRESS = "0x73a58b73018c1a417534232529b57b99132b13D2"
USDC_ADDRESS = "0xf817257fed379853cDe0fa4F97AB987181B1E5Ea"
WETH_ADDRESS = "0xB5a30b0FDc5EA94A52fDc42e3E9760Cb8449Fb37"
WBTC_ADDRESS = "0xcf5a6076cfa32686c0Df13aBaDa2b40dec133F1d"

TOKEN_ADDRESSES: Dict[str, str] = {
    "mon": MON_ADDRESS,
    "wmon": MON_ADDRESS,  # priced as native mon
    "dak": DAK_ADDRESS,
    "lbtc": LBTC_ADDRESS,
    "usdc": USDC_ADDRESS,
    "usdt": USDC_ADDRESS,  # no usdt route on the page, priced as usdc
    "eth": WETH_ADDRESS,
    "wbtc": WBTC_ADDRESS,
}

DEFAULT_DECIMALS = 2

_OUTPUT_DECIMALS: Dict[str, int] = {
    "lbtc": 8,
    "wbtc": 8,
    "eth": 5,
    "usdc": 2,
    "usdt": 2,
}


def resolve_address(symbol: str) -> Optional[str]:
    """Return the address for an exact symbol match, or None."""
    return TOKEN_ADDRESSES.get(symbol)


def output_decimals(symbol: str) -> int:
    """Decimal places an output amount of this token is truncated to."""
    return _OUTPUT_DECIMALS.get(symbol, DEFAULT_DECIMALS)
