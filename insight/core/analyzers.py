# ==============================================================================
# Exit Page, Traffic Source and Funnel Analyzers
# ==============================================================================
"""
Derived metrics computed independently over a window's raw events.

- exit_pages(): which pages visitors leave from
- traffic_sources(): where visitors come from
- conversion_funnel(): how many visitors reach each shopping stage
"""

import re
from collections import Counter
from collections.abc import Sequence
from urllib.parse import urlparse

from insight.core.aggregator import ratio, round_half_up
from insight.core.models import ExitPage, FunnelStage, RawEvent, TrafficSource
from insight.core.session_builder import group_by_visitor

DEFAULT_EXIT_PAGES_LIMIT = 10

# Substring -> display name, checked in order
KNOWN_SOURCES = (
    ("google", "Google"),
    ("facebook", "Facebook"),
    ("instagram", "Instagram"),
    ("twitter", "Twitter"),
    ("linkedin", "LinkedIn"),
    ("youtube", "YouTube"),
    ("reddit", "Reddit"),
    ("bing", "Bing"),
    ("duckduckgo", "DuckDuckGo"),
)

DIRECT = "direct"

# (stage name, path pattern)
DEFAULT_FUNNEL = (
    ("View Product", r"/product"),
    ("Add to Cart", r"/cart|add-to-cart"),
    ("Checkout", r"/checkout"),
    ("Purchase", r"/purchase|/order-confirm|/thank-you|/success"),
)


# ==============================================================================
# Exit Pages
# ==============================================================================


def exit_pages(events: Sequence[RawEvent], limit: int = DEFAULT_EXIT_PAGES_LIMIT) -> list[ExitPage]:
    """
    Rank pages by how often they end a visitor's activity in the window.

    Args:
        events: Window events, any order
        limit: Maximum number of pages returned

    Returns:
        Pages sorted by exit rate descending (then visits, then url)
    """
    visits: Counter[str] = Counter()
    time_on_page: Counter[str] = Counter()
    for event in events:
        visits[event.path] += 1
        time_on_page[event.path] += event.time_on_page or 0

    exits: Counter[str] = Counter(
        ordered[-1].path for ordered in group_by_visitor(events).values()
    )

    pages = [
        ExitPage(
            url=path,
            exit_rate=ratio(exits[path], count, 100),
            visits=count,
            avg_time_on_page=int(round_half_up(time_on_page[path] / count, 0)),
        )
        for path, count in visits.items()
    ]
    pages.sort(key=lambda p: (-p.exit_rate, -p.visits, p.url))
    return pages[:limit]


# ==============================================================================
# Traffic Sources
# ==============================================================================


def _known_source(value: str) -> str | None:
    for needle, label in KNOWN_SOURCES:
        if needle in value:
            return label
    return None


def normalize_source(raw: str) -> str:
    """
    Map a raw utm_source/referrer value to a display label.

    For http(s) URLs only the hostname is considered: a known marketing
    domain maps to its canonical name, any other host is returned without
    a leading "www.". Bare values (e.g. utm_source=google) are matched by
    substring. Anything else, including "direct", passes through unchanged.
    """
    value = raw.strip()
    lowered = value.lower()

    if lowered.startswith(("http://", "https://")):
        hostname = urlparse(lowered).hostname
        if hostname:
            return _known_source(hostname) or hostname.removeprefix("www.")
        return value

    return _known_source(lowered) or value


def source_key(event: RawEvent) -> str:
    """utm_source if present, else referrer, else "direct"."""
    for candidate in (event.utm_source, event.referrer):
        if candidate and candidate.strip():
            return candidate
    return DIRECT


def traffic_sources(events: Sequence[RawEvent]) -> list[TrafficSource]:
    """
    Roll up visitors by acquisition source.

    A visitor counts as bounced when their total event count in the window
    (across all sources) is exactly 1.

    Args:
        events: Window events, any order

    Returns:
        Sources sorted by visitor count descending
    """
    events_per_visitor = Counter(e.visitor_id for e in events)
    visitors_by_source: dict[str, set[str]] = {}
    for event in events:
        label = normalize_source(source_key(event))
        visitors_by_source.setdefault(label, set()).add(event.visitor_id)

    total_visitors = len(events_per_visitor)
    sources = [
        TrafficSource(
            source=label,
            visitors=len(visitor_ids),
            bounce_rate=ratio(
                sum(1 for v in visitor_ids if events_per_visitor[v] == 1),
                len(visitor_ids),
                100,
            ),
            percentage=ratio(len(visitor_ids), total_visitors, 100),
        )
        for label, visitor_ids in visitors_by_source.items()
    ]
    sources.sort(key=lambda s: (-s.visitors, s.source))
    return sources


# ==============================================================================
# Conversion Funnel
# ==============================================================================


def conversion_funnel(
    events: Sequence[RawEvent],
    stages: Sequence[tuple[str, str]] = DEFAULT_FUNNEL,
) -> list[FunnelStage]:
    """
    Count visitors per funnel stage.

    Stage membership is independent: a visitor is in a stage if any path
    they visited matches the stage pattern, whether or not they matched the
    earlier stages. A stage larger than the one before it has zero drop-off.

    Args:
        events: Window events, any order
        stages: Ordered (name, case-insensitive path regex) pairs

    Returns:
        One FunnelStage per configured stage, in order
    """
    paths_by_visitor: dict[str, set[str]] = {}
    for event in events:
        paths_by_visitor.setdefault(event.visitor_id, set()).add(event.path)

    result: list[FunnelStage] = []
    previous: int | None = None
    for name, pattern in stages:
        matcher = re.compile(pattern, re.IGNORECASE)
        count = sum(
            1 for paths in paths_by_visitor.values() if any(matcher.search(p) for p in paths)
        )
        if previous is None:
            drop_off = 0
            drop_off_rate = 0.0
        else:
            drop_off = max(0, previous - count)
            drop_off_rate = ratio(drop_off, previous, 100)
        result.append(
            FunnelStage(
                stage=name,
                visitors=count,
                drop_off_count=drop_off,
                drop_off_rate=drop_off_rate,
            )
        )
        previous = count
    return result
