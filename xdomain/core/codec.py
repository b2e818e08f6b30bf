# ==============================================================================
# Cross-Domain Parameter Codec
# ==============================================================================
"""
Encodes and decodes identity carried in URL query parameters.

Two encodings coexist:

1. Composite parameter ``adobe_mc``: a pipe-delimited list of KEY=VALUE pairs,
   e.g. ``MCMID=VID-abc|MCORGID=acme@AdobeOrg|TS=1700000000000``.
   The visitor id is written as MCMID; MCID is accepted as an alias. When a
   composite carries both, the later segment wins.
2. Individual parameters, one per concern: MCID (visitor id), MCORGID
   (organization id), MCAID (analytics id), TS (epoch milliseconds).

Decoding never fails on malformed input: bad composite segments are skipped
and reported. When both encodings carry a visitor id, the individual MCID
parameter wins.

Encoding rewrites only the tracking keys. Every other raw query segment, the
path and the fragment are kept byte-for-byte.
"""

import logging
import time
from urllib.parse import parse_qsl, quote_plus, unquote_plus, urlsplit, urlunsplit

from xdomain.core.models import InboundIdentity

logger = logging.getLogger(__name__)

# URL parameter keys
COMPOSITE_PARAM = "adobe_mc"
VISITOR_ID_PARAM = "MCID"
VISITOR_ID_ALIASES = ("MCMID", "MCID")
ORG_ID_PARAM = "MCORGID"
ANALYTICS_ID_PARAM = "MCAID"
TIMESTAMP_PARAM = "TS"

TRACKING_PARAMS = frozenset(
    {COMPOSITE_PARAM, VISITOR_ID_PARAM, ORG_ID_PARAM, ANALYTICS_ID_PARAM, TIMESTAMP_PARAM}
)

PAIR_SEPARATOR = "|"
KEY_VALUE_SEPARATOR = "="


def current_epoch_ms() -> int:
    """Current time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def _parse_timestamp(value: str | None) -> int | None:
    if value is None or not value.isdigit():
        return None
    return int(value)


# ==============================================================================
# Composite parameter
# ==============================================================================


def build_composite(visitor_id: str, org_id: str, timestamp_ms: int) -> str:
    """
    Build the composite parameter value.

    Args:
        visitor_id: Visitor id to propagate
        org_id: Organization id
        timestamp_ms: Epoch milliseconds

    Returns:
        ``MCMID=<visitor_id>|MCORGID=<org_id>|TS=<timestamp_ms>``
    """
    return PAIR_SEPARATOR.join(
        [
            f"MCMID={visitor_id}",
            f"{ORG_ID_PARAM}={org_id}",
            f"{TIMESTAMP_PARAM}={timestamp_ms}",
        ]
    )


def parse_composite(value: str) -> tuple[dict[str, str], list[str]]:
    """
    Parse a composite parameter value into pairs.

    Segments are split on ``|`` and then on the first ``=``. Empty segments
    are ignored; segments without ``=`` or with an empty key are skipped.

    Args:
        value: Raw (already URL-decoded) composite value

    Returns:
        Tuple of (pairs, skipped segments). Later duplicates overwrite earlier ones.
    """
    pairs: dict[str, str] = {}
    skipped: list[str] = []
    for segment in value.split(PAIR_SEPARATOR):
        if not segment:
            continue
        key, sep, val = segment.partition(KEY_VALUE_SEPARATOR)
        key = key.strip()
        if not sep or not key:
            skipped.append(segment)
            continue
        pairs[key] = val
    return pairs, skipped


# ==============================================================================
# Inbound decoding
# ==============================================================================


def _composite_visitor_id(value: str) -> str | None:
    """Last non-empty visitor id in segment order, under either alias."""
    visitor_id = None
    for segment in value.split(PAIR_SEPARATOR):
        key, sep, val = segment.partition(KEY_VALUE_SEPARATOR)
        if sep and key.strip() in VISITOR_ID_ALIASES and val:
            visitor_id = val
    return visitor_id


def decode_inbound(url: str) -> InboundIdentity:
    """
    Recover identity fields from an inbound URL.

    The composite parameter is applied first, then the individual
    parameters; an individual MCID overrides a composite visitor id.

    Args:
        url: Full URL of the page being loaded (or just its query string)

    Returns:
        InboundIdentity; empty when the URL carries no tracking parameters
    """
    try:
        query = urlsplit(url).query if ("?" in url or "://" in url) else url
    except ValueError:
        logger.warning("Could not parse inbound URL %r", url)
        return InboundIdentity()

    params: dict[str, str] = {}
    for key, val in parse_qsl(query, keep_blank_values=True):
        params.setdefault(key, val)

    result = InboundIdentity()

    composite = params.get(COMPOSITE_PARAM)
    if composite:
        pairs, skipped = parse_composite(composite)
        if skipped:
            logger.info("Skipped %d malformed %s segment(s)", len(skipped), COMPOSITE_PARAM)
        visitor_id = _composite_visitor_id(composite)
        result = result.model_copy(
            update={
                "composite": composite,
                "skipped": skipped,
                "visitor_id": visitor_id,
                "org_id": pairs.get(ORG_ID_PARAM) or None,
                "timestamp": _parse_timestamp(pairs.get(TIMESTAMP_PARAM)),
            }
        )

    updates = {}
    if params.get(VISITOR_ID_PARAM):
        updates["visitor_id"] = params[VISITOR_ID_PARAM]
    if params.get(ANALYTICS_ID_PARAM):
        updates["analytics_id"] = params[ANALYTICS_ID_PARAM]
    if result.org_id is None and params.get(ORG_ID_PARAM):
        updates["org_id"] = params[ORG_ID_PARAM]
    if result.timestamp is None and _parse_timestamp(params.get(TIMESTAMP_PARAM)) is not None:
        updates["timestamp"] = _parse_timestamp(params.get(TIMESTAMP_PARAM))
    if updates:
        result = result.model_copy(update=updates)
    return result


# ==============================================================================
# Outbound encoding
# ==============================================================================


def _encode_pair(key: str, value: str) -> str:
    return f"{quote_plus(key, safe='')}={quote_plus(value, safe='')}"


def _segment_key(segment: str) -> str:
    return unquote_plus(segment.partition("=")[0])


def tracking_params(
    visitor_id: str,
    org_id: str,
    timestamp_ms: int,
    analytics_id: str | None = None,
) -> dict[str, str]:
    """
    Tracking query parameters for an outbound link, in write order.

    Args:
        visitor_id: Visitor id to propagate
        org_id: Organization id
        timestamp_ms: Epoch milliseconds
        analytics_id: Optional analytics id

    Returns:
        Ordered mapping of parameter name to (unencoded) value
    """
    params = {
        COMPOSITE_PARAM: build_composite(visitor_id, org_id, timestamp_ms),
        VISITOR_ID_PARAM: visitor_id,
        ORG_ID_PARAM: org_id,
        TIMESTAMP_PARAM: str(timestamp_ms),
    }
    if analytics_id:
        params[ANALYTICS_ID_PARAM] = analytics_id
    return params


def set_query_params(url: str, updates: dict[str, str]) -> str:
    """
    Set query parameters on an absolute URL without touching other segments.

    The first existing segment of an updated key is replaced in place, later
    duplicates are dropped, and keys not yet present are appended.

    Raises:
        ValueError: If url cannot be parsed
    """
    parts = urlsplit(url)
    # Accessing port validates it (raises ValueError when out of range)
    parts.port

    written: set[str] = set()
    segments: list[str] = []
    for segment in parts.query.split("&") if parts.query else []:
        key = _segment_key(segment)
        if key in updates:
            if key not in written:
                segments.append(_encode_pair(key, updates[key]))
                written.add(key)
            continue
        segments.append(segment)
    for key, value in updates.items():
        if key not in written:
            segments.append(_encode_pair(key, value))

    return urlunsplit(parts._replace(query="&".join(segments)))


def encode_outbound(
    url: str,
    visitor_id: str,
    org_id: str,
    timestamp_ms: int | None = None,
    analytics_id: str | None = None,
) -> str:
    """
    Decorate an absolute URL with the identity parameters.

    Args:
        url: Absolute target URL
        visitor_id: Visitor id to propagate
        org_id: Organization id
        timestamp_ms: Epoch milliseconds (default: now)
        analytics_id: Optional analytics id

    Returns:
        URL carrying adobe_mc, MCID, MCORGID and TS (plus MCAID if given)

    Raises:
        ValueError: If url cannot be parsed
    """
    if timestamp_ms is None:
        timestamp_ms = current_epoch_ms()
    return set_query_params(
        url, tracking_params(visitor_id, org_id, timestamp_ms, analytics_id=analytics_id)
    )
