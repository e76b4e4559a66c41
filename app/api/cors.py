# app/api/cors.py
"""
Origin allow-listing and CORS header assembly.

Allowed origins are described by OriginRule tuples rather than regular
expressions: an origin matches when its scheme equals the rule's scheme and
its host is the rule's domain or (if allowed) a subdomain of it.
``http://localhost`` with an optional numeric port is always allowed.

Configuration is loaded from app/core/config.py:
- ALLOWED_ORIGIN_DOMAINS: Comma-separated https domains (subdomains allowed)
"""
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional
from urllib.parse import urlsplit

from fastapi import Response

from app.core.config import settings

logger = logging.getLogger(__name__)

LOCALHOST_ORIGIN = "http://localhost"

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"
PREFLIGHT_MAX_AGE = "3600"


class OriginRule(NamedTuple):
    scheme: str
    domain: str
    allow_subdomains: bool = True


def parse_origin_rules(domains: Iterable[str]) -> List[OriginRule]:
    """Build https rules (subdomains allowed) from a list of domains."""
    return [OriginRule("https", domain.strip().lower()) for domain in domains if domain.strip()]


def get_origin_rules() -> List[OriginRule]:
    return parse_origin_rules(settings.allowed_origin_domains)


def is_localhost_origin(origin: str) -> bool:
    if origin == LOCALHOST_ORIGIN:
        return True
    prefix = LOCALHOST_ORIGIN + ":"
    if not origin.startswith(prefix):
        return False
    port = origin[len(prefix):]
    return port.isascii() and port.isdigit()


def origin_matches_rule(origin: str, rule: OriginRule) -> bool:
    """Check an origin against a single rule using plain string comparison."""
    try:
        parts = urlsplit(origin)
        # Accessing .port validates it; a malformed port raises ValueError
        parts.port
    except ValueError:
        return False

    if parts.scheme != rule.scheme:
        return False

    # An Origin header is scheme://host[:port] and nothing else
    if parts.path or parts.query or parts.fragment or parts.username or parts.password:
        return False

    host = parts.hostname
    if not host:
        return False

    if host == rule.domain:
        return True
    return rule.allow_subdomains and host.endswith("." + rule.domain)


def is_origin_allowed(origin: Optional[str], rules: Optional[List[OriginRule]] = None) -> bool:
    """
    Decide whether a request's Origin header value is allowed.

    Args:
        origin: Value of the Origin header, or None if absent
        rules: Rules to check against. Defaults to the configured domains.

    Returns:
        True if the origin is localhost or matches any rule
    """
    if not origin:
        return False

    if is_localhost_origin(origin):
        return True

    if rules is None:
        rules = get_origin_rules()

    return any(origin_matches_rule(origin, rule) for rule in rules)


def cors_headers(origin: Optional[str], preflight: bool = False) -> Dict[str, str]:
    """
    CORS headers to attach for the given origin.

    Returns an empty dict when the origin is not allowed, so callers can
    apply the result unconditionally.
    """
    if not is_origin_allowed(origin):
        return {}

    headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Vary": "Origin",
    }
    if preflight:
        headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
    return headers


def apply_cors_headers(response: Response, origin: Optional[str], preflight: bool = False) -> Response:
    for header, value in cors_headers(origin, preflight=preflight).items():
        response.headers[header] = value
    return response
