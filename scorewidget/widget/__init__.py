"""Headless CRM score widget.

Modules:
    scoring     — score normalization + display helpers
    state       — WidgetSession, WidgetView, ErrorBanner
    client      — proxy HTTP client (requests)
    events      — parent-frame notification contract
    controller  — ScoreWidget: UI event handlers + save protocol
"""

from scorewidget.widget.controller import ScoreWidget, parse_account_id

__all__ = ["ScoreWidget", "parse_account_id"]
