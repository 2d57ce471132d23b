# link_scout/crawler/normalizer.py
"""
URL canonicalisation and domain scoping for LinkScout.

Every URL the crawler compares, stores or enqueues goes through
:func:`normalize` first, so two spellings of the same resource collapse to a
single dedup key.
"""
from __future__ import annotations

import posixpath
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from link_scout.crawler.models import NormalizedURL
from link_scout.errors import MalformedURL

__all__ = ("normalize", "in_scope", "host_of", "SUPPORTED_SCHEMES")

SUPPORTED_SCHEMES = frozenset(("http", "https"))
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _normalize_path(path: str) -> str:
    if not path:
        return "/"
    norm = posixpath.normpath(path)
    if not norm.startswith("/"):
        norm = "/" + norm
    if norm != "/":
        norm = norm.rstrip("/") or "/"
    return norm


def normalize(raw: str, base: Optional[str] = None) -> NormalizedURL:
    """
    Canonicalise *raw*, resolving it against *base* when given.

    Lower-cases scheme and host, drops default ports and the fragment,
    collapses dot segments, maps an empty path to ``/`` and strips the
    trailing slash of any other path. The query string is kept verbatim.

    Raises :class:`MalformedURL` for unparsable input, a bad port, a missing
    host or a scheme other than http/https.
    """
    if not isinstance(raw, str):
        raise MalformedURL(repr(raw), "not a string")
    candidate = raw.strip()
    try:
        if base:
            candidate = urljoin(base, candidate)
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise MalformedURL(candidate, str(exc)) from exc

    scheme = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise MalformedURL(candidate, f"unsupported scheme {scheme or '<none>'!r}")

    host = (parts.hostname or "").lower()
    if not host:
        raise MalformedURL(candidate, "missing host")
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal

    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    userinfo, sep, _ = parts.netloc.rpartition("@")
    if sep:
        netloc = f"{userinfo}@{netloc}"

    path = _normalize_path(parts.path)
    return NormalizedURL(urlunsplit((scheme, netloc, path, parts.query, "")))


def host_of(url: str) -> str:
    """Lower-cased host of *url* without port; empty string if there is none."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def in_scope(url: NormalizedURL, seed_host: str) -> bool:
    """True iff *url* lives on exactly the seed's host (no subdomains)."""
    return bool(seed_host) and host_of(url) == seed_host.lower()
