"""
Attribute lookup in provider HTML.

Embed pages change their markup without notice, so the extractors only ask
for "the first value of attribute X" and the matching strategy stays
swappable.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DIGITS = r"\d+"


class AttributeMatcher(ABC):
    """Finds the first value of an HTML attribute matching a pattern."""

    @abstractmethod
    def find(self, html: str, attribute: str, value_pattern: str = DIGITS) -> Optional[str]:
        pass


class RegexAttributeMatcher(AttributeMatcher):
    """Scan the raw markup, quoted with either single or double quotes."""

    def find(self, html: str, attribute: str, value_pattern: str = DIGITS) -> Optional[str]:
        match = re.search(rf"""{re.escape(attribute)}=["']({value_pattern})["']""", html)
        return match.group(1) if match else None


class SoupAttributeMatcher(AttributeMatcher):
    """Parse the document and walk elements carrying the attribute in order."""

    def __init__(self, features: str = "lxml"):
        self.features = features

    def find(self, html: str, attribute: str, value_pattern: str = DIGITS) -> Optional[str]:
        soup = BeautifulSoup(html, self.features)
        for tag in soup.find_all(attrs={attribute: True}):
            value = tag.get(attribute)
            if isinstance(value, str) and re.fullmatch(value_pattern, value.strip()):
                return value.strip()
        return None


default_matcher: AttributeMatcher = RegexAttributeMatcher()


def extract_first_attribute(
    html: str,
    attribute: str,
    value_pattern: str = DIGITS,
    matcher: Optional[AttributeMatcher] = None,
) -> Optional[str]:
    if not html:
        return None
    value = (matcher or default_matcher).find(html, attribute, value_pattern)
    logger.debug(f"Attribute {attribute} lookup returned {value!r}")
    return value
