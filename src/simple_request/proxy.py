"""Proxy URL rewriting."""

from __future__ import annotations

from urllib.parse import quote

# Characters left alone by URI component encoding.
_COMPONENT_SAFE = "-_.!~*'()"


def rewrite_url(url: str, proxy: str | None, encode: bool = False) -> str:
    """Prefix ``url`` with ``proxy`` when one is configured.

    ``https://proxy.com/path/`` turns ``http://domain.com/?q=1`` into
    ``https://proxy.com/path/http://domain.com/?q=1``. With ``encode`` the
    target is percent-encoded first, for proxies taking it as a query
    parameter (``https://proxy.com/?url=``).
    """
    if not proxy:
        return url
    target = quote(url, safe=_COMPONENT_SAFE) if encode else url
    return proxy + target


__all__ = ["rewrite_url"]
