"""Selector rewriting and URL heuristics used by the path executor.

All functions here are pure string processing.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

_CONTAINS_RE = re.compile(r"""(:contains\(['"])(.*?)(['"]\))""")
_HREF_EXACT_RE = re.compile(r"""href=['"]([^'"]+)['"]""")
_HREF_PARTIAL_RE = re.compile(r"""href\*=['"]([^'"]+)['"]""")


def convert_selector(selector: str) -> str:
    """Rewrite jQuery-style ``:contains('x')`` into Playwright's ``:has-text('x')``."""
    return _CONTAINS_RE.sub(lambda m: f":has-text('{m.group(2)}')", selector)


def extract_href_targets(selectors: Iterable[str]) -> List[str]:
    """Build ``a[href...]`` click selectors from href values quoted in ``selectors``.

    Absolute targets get an exact ``a[href='x']`` match, anything else a
    partial ``a[href*='x']`` match.
    """
    targets: List[str] = []
    for selector in selectors:
        for pattern in (_HREF_EXACT_RE, _HREF_PARTIAL_RE):
            for match in pattern.finditer(selector):
                value = match.group(1)
                if value.startswith("http"):
                    candidate = f"a[href='{value}']"
                else:
                    candidate = f"a[href*='{value}']"
                if candidate not in targets:
                    targets.append(candidate)
    return targets


def extract_absolute_urls(selectors: Iterable[str]) -> List[str]:
    urls: List[str] = []
    for selector in selectors:
        for pattern in (_HREF_EXACT_RE, _HREF_PARTIAL_RE):
            for match in pattern.finditer(selector):
                value = match.group(1)
                if value.startswith(("http://", "https://")) and value not in urls:
                    urls.append(value)
    return urls


def base_url(url: str) -> Optional[str]:
    """URL without query string and fragment, or ``None`` when unparseable."""
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}{parts.path}"


def is_bare_root(url: str) -> bool:
    """True when ``url`` parses and has no path segment (``""`` or ``"/"``)."""
    if base_url(url) is None:
        return False
    return urlsplit(url.strip()).path in ("", "/")


def requires_navigation(index: int, url: str, previous_url: Optional[str]) -> bool:
    """Decide whether step ``index`` must navigate before it runs.

    The first step navigates when its URL is a bare root. Later steps navigate
    when their base URL differs from the previous step's. An unparseable URL
    always navigates.
    """
    current = base_url(url)
    if current is None:
        return True
    if index == 0 or previous_url is None:
        return is_bare_root(url)
    previous = base_url(previous_url)
    if previous is None:
        return True
    return current != previous


__all__ = [
    "convert_selector",
    "extract_href_targets",
    "extract_absolute_urls",
    "base_url",
    "is_bare_root",
    "requires_navigation",
]
