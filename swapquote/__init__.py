"""
swapquote - exchange rate quotes scraped from a swap web page.
"""

__version__ = "0.1.0"
