# ==============================================================================
# Tests for Exit Page, Traffic Source and Funnel Analyzers - analyzers.py
# ==============================================================================
"""
Tests for the derived metrics computed over a window's raw events.
"""

import pytest

from insight.core.analyzers import (
    conversion_funnel,
    exit_pages,
    normalize_source,
    source_key,
    traffic_sources,
)

# ==============================================================================
# exit_pages
# ==============================================================================


class TestExitPages:
    """Tests for exit page ranking."""

    def test_empty(self):
        assert exit_pages([]) == []

    def test_rates_and_order(self, make_event):
        events = [
            make_event("A", 0, path="/home"),
            make_event("A", 1, path="/cart"),
            make_event("B", 0, path="/cart"),
            make_event("B", 1, path="/checkout"),
        ]
        pages = exit_pages(events)
        assert [(p.url, p.exit_rate) for p in pages] == [
            ("/checkout", 100.0),
            ("/cart", 50.0),
            ("/home", 0.0),
        ]
        assert pages[1].visits == 2

    def test_exit_uses_last_event_in_window(self, make_event):
        """A visitor's exit page is their last event, even across sessions."""
        events = [
            make_event("A", 0, path="/a"),
            make_event("A", 120, path="/b"),
        ]
        by_url = {p.url: p for p in exit_pages(events)}
        assert by_url["/b"].exit_rate == 100.0
        assert by_url["/a"].exit_rate == 0.0

    def test_avg_time_on_page_treats_missing_as_zero(self, make_event):
        events = [
            make_event("A", 0, path="/cart", time_on_page=10),
            make_event("B", 0, path="/cart"),
        ]
        (page,) = exit_pages(events)
        assert page.avg_time_on_page == 5

    def test_avg_time_on_page_rounds_half_up(self, make_event):
        events = [
            make_event("A", 0, path="/cart", time_on_page=5),
            make_event("B", 0, path="/cart", time_on_page=0),
        ]
        (page,) = exit_pages(events)
        assert page.avg_time_on_page == 3

    def test_tie_break_by_visits_then_url(self, make_event):
        events = [
            make_event("A", 0, path="/z"),
            make_event("B", 0, path="/a"),
            make_event("C", 0, path="/m"),
            make_event("D", 0, path="/m"),
        ]
        assert [p.url for p in exit_pages(events)] == ["/m", "/a", "/z"]

    def test_limit(self, make_event):
        events = [make_event(f"v{i}", 0, path=f"/p{i}") for i in range(15)]
        assert len(exit_pages(events)) == 10
        assert len(exit_pages(events, limit=3)) == 3


# ==============================================================================
# normalize_source / source_key
# ==============================================================================


class TestNormalizeSource:
    """Tests for referrer and utm_source labelling."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("https://www.google.com/search?q=shoes", "Google"),
            ("https://m.facebook.com/", "Facebook"),
            ("https://www.linkedin.com/feed", "LinkedIn"),
            ("direct", "direct"),
            ("DIRECT", "DIRECT"),
            ("https://www.example.org/blog/post", "example.org"),
            ("http://news.site.io", "news.site.io"),
            ("newsletter", "newsletter"),
            ("google", "Google"),
            ("https://myblog.com/how-to-google-things", "myblog.com"),
            ("https://www.example.org/?ref=twitter", "example.org"),
        ],
    )
    def test_labels(self, raw, expected):
        assert normalize_source(raw) == expected

    def test_source_key_prefers_utm(self, make_event):
        event = make_event(referrer="https://www.google.com/", utm_source="newsletter")
        assert source_key(event) == "newsletter"

    def test_source_key_falls_back_to_direct(self, make_event):
        assert source_key(make_event(referrer="  ")) == "direct"


# ==============================================================================
# traffic_sources
# ==============================================================================


class TestTrafficSources:
    """Tests for the per-source visitor roll-up."""

    def test_empty(self):
        assert traffic_sources([]) == []

    def test_rollup(self, make_event):
        events = [
            make_event("A", 0, referrer="https://www.google.com/search"),
            make_event("A", 1, referrer="https://www.google.com/search"),
            make_event("B", 0, referrer="https://google.co.uk/"),
            make_event("C", 0),
        ]
        sources = traffic_sources(events)
        assert [s.source for s in sources] == ["Google", "direct"]

        google, direct = sources
        assert google.visitors == 2
        assert google.bounce_rate == 50.0
        assert google.percentage == 66.7
        assert direct.visitors == 1
        assert direct.bounce_rate == 100.0
        assert direct.percentage == 33.3

    def test_sorted_by_visitors_then_name(self, make_event):
        events = [
            make_event("A", 0, utm_source="zeta"),
            make_event("B", 0, utm_source="alpha"),
        ]
        assert [s.source for s in traffic_sources(events)] == ["alpha", "zeta"]


# ==============================================================================
# conversion_funnel
# ==============================================================================


class TestConversionFunnel:
    """Tests for funnel stage counting."""

    def test_empty_window_still_lists_stages(self):
        stages = conversion_funnel([])
        assert [s.stage for s in stages] == ["View Product", "Add to Cart", "Checkout", "Purchase"]
        assert all(s.visitors == 0 and s.drop_off_rate == 0.0 for s in stages)

    def test_counts_and_drop_off(self, make_event):
        events = [
            make_event("A", 0, path="/product/1"),
            make_event("A", 1, path="/cart"),
            make_event("A", 2, path="/checkout"),
            make_event("A", 3, path="/thank-you"),
            make_event("B", 0, path="/product/2"),
            make_event("B", 1, path="/add-to-cart?id=2"),
            make_event("C", 0, path="/PRODUCT/3"),
            make_event("D", 0, path="/checkout"),
        ]
        stages = conversion_funnel(events)
        assert [(s.visitors, s.drop_off_count, s.drop_off_rate) for s in stages] == [
            (3, 0, 0.0),
            (2, 1, 33.3),
            (2, 0, 0.0),
            (1, 1, 50.0),
        ]

    def test_stage_after_empty_stage(self, make_event):
        """Stages are independent, so a later stage can exceed an earlier one."""
        stages = conversion_funnel([make_event("A", 0, path="/checkout")])
        checkout = stages[2]
        assert checkout.visitors == 1
        assert checkout.drop_off_count == 0
        assert checkout.drop_off_rate == 0.0

    def test_larger_later_stage_has_no_drop_off(self, make_event):
        events = [
            make_event("A", 0, path="/product/1"),
            make_event("A", 1, path="/cart"),
            make_event("B", 0, path="/cart"),
            make_event("C", 0, path="/cart"),
        ]
        cart = conversion_funnel(events)[1]
        assert cart.visitors == 3
        assert cart.drop_off_count == 0
        assert cart.drop_off_rate == 0.0

    def test_custom_stages(self, make_event):
        events = [make_event("A", 0, path="/signup"), make_event("B", 0, path="/pricing")]
        stages = conversion_funnel(events, stages=[("Pricing", r"/pricing"), ("Signup", r"/signup")])
        assert [(s.stage, s.visitors) for s in stages] == [("Pricing", 1), ("Signup", 1)]
