"""Proxy routes: health, account pass-through, and the widget page."""
