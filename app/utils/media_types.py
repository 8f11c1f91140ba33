"""
Accept Header Negotiation

Picks the response media type for endpoints that offer more than one
representation. The API answers 406 Not Acceptable when nothing the client
accepts is offered.
"""

from collections.abc import Mapping, Sequence
from typing import Any


def _parse_accept(accept: str) -> list[str]:
    """Media ranges in client order, skipping those with q=0."""
    ranges = []
    for item in accept.split(","):
        parts = [p.strip() for p in item.split(";")]
        media_range = parts[0].lower()
        if not media_range:
            continue
        rejected = any(
            p.replace(" ", "").lower() in ("q=0", "q=0.0", "q=0.00", "q=0.000")
            for p in parts[1:]
        )
        if not rejected:
            ranges.append(media_range)
    return ranges


def select_media_type(accept: str | None, offered: Sequence[str]) -> str | None:
    """
    Select the offered media type that best matches an Accept header.

    The first entry of offered is the default: it is returned when the
    header is absent or only has wildcards.

    Example:
        >>> select_media_type("application/xml, application/json", ["application/json"])
        'application/json'
        >>> select_media_type("text/html", ["application/json"]) is None
        True
    """
    if not accept or not accept.strip():
        return offered[0]

    for media_range in _parse_accept(accept):
        if media_range == "*/*":
            return offered[0]
        if media_range.endswith("/*"):
            main_type = media_range[:-1]
            for media_type in offered:
                if media_type.startswith(main_type):
                    return media_type
            continue
        for media_type in offered:
            if media_type == media_range:
                return media_type
    return None


JSON_MEDIA_TYPE = "application/json"


def offered_media_types(responses: Mapping[Any, Any] | None) -> list[str]:
    """
    Media types an endpoint can produce, default first.

    Every endpoint produces application/json; vendor media types come from
    the content documented for its 200 (or 201) response.

    Example:
        >>> offered_media_types({200: {"content": {"application/vnd.x+json": {}}}})
        ['application/json', 'application/vnd.x+json']
    """
    offered = [JSON_MEDIA_TYPE]
    for status_code in (200, 201, "200", "201"):
        content = (responses or {}).get(status_code, {}).get("content", {})
        offered.extend(m for m in content if m not in offered)
    return offered
