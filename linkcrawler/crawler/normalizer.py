"""
URL normalization for deduplication and host comparison.
"""

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse, urldefrag

from ..utils.config import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {'http': 80, 'https': 443}

# "mailto:", "javascript:" and the like; "localhost:8080" is a host and port
SCHEME_PREFIX = re.compile(r'^[a-z][a-z0-9+.-]*:(?!\d)', re.IGNORECASE)


def normalize_url(raw: str, base: str) -> Optional[str]:
    """
    Turn a raw link into an absolute, comparable URL key.

    - Joins relative links against base
    - Drops fragments (#...)
    - Lower-cases scheme and host
    - Removes default ports (:80, :443)
    - Keeps querystrings (they matter for uniqueness)

    Returns None for non-http(s) links and anything unparseable.
    """
    if not raw or not raw.strip():
        return None

    try:
        joined, _ = urldefrag(urljoin(base, raw.strip()))
        parsed = urlparse(joined)
        scheme = parsed.scheme.lower()
        hostname = parsed.hostname
        port = parsed.port
    except ValueError as e:
        logger.debug(f"Rejected malformed link {raw!r}: {e}")
        return None

    if scheme not in DEFAULT_PORTS:
        logger.debug(f"Rejected link {raw!r}: unsupported scheme {scheme!r}")
        return None

    if not hostname:
        logger.debug(f"Rejected link {raw!r}: no host")
        return None

    # hostname is already lower-cased by urlparse
    host = f"[{hostname}]" if ':' in hostname else hostname
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    else:
        netloc = host

    return urlunparse((
        scheme,
        netloc,
        parsed.path or '/',
        parsed.params,
        parsed.query,
        ''
    ))


def url_host(url: str) -> str:
    """Return the lower-cased host of a URL, or an empty string."""
    try:
        return (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''


def normalize_seed(raw: str) -> str:
    """
    Normalize the crawl entrypoint.

    A bare domain such as ``example.com`` is treated as ``http://example.com/``.
    Raises ConfigError when no usable http(s) URL can be built.
    """
    candidate = (raw or '').strip()
    if not candidate:
        raise ConfigError("A seed URL must be provided")

    if '://' not in candidate:
        if SCHEME_PREFIX.match(candidate):
            raise ConfigError(f"Unsupported seed URL scheme: {raw!r}")
        candidate = f"http://{candidate}"

    seed = normalize_url(candidate, candidate)
    if seed is None:
        raise ConfigError(f"Cannot parse the given seed URL: {raw!r}")
    return seed
