"""
BeautifulSoup helpers shared by the portal parsers.
"""
import re

from bs4 import BeautifulSoup, Tag


def parse_currency(text: str) -> float:
    """``"$1,234.56"`` -> 1234.56; anything unparseable -> 0.0."""
    try:
        return float(re.sub(r"[$,\s]", "", text))
    except ValueError:
        return 0.0


def parse_rate(text: str) -> float:
    """``"6.125 %"`` -> 6.125; anything unparseable -> 0.0."""
    try:
        return float(re.sub(r"[%\s]", "", text))
    except ValueError:
        return 0.0


def parse_quantity(text: str) -> float | None:
    """Leading numeric part of a usage cell (``"640 kWh"`` -> 640.0), or None."""
    try:
        return float(re.sub(r"[^\d.]", "", text))
    except ValueError:
        return None


def first_text(soup: BeautifulSoup | Tag, *selectors: str) -> str:
    """Stripped text of the first selector that matches a non-empty element."""
    for selector in selectors:
        el = soup.select_one(selector)
        if el is not None:
            text = el.get_text(strip=True)
            if text:
                return text
    return ""
