"""Aggregated visit and download statistics."""

PLUGIN_METADATA = {
    "name": "analytics/stats",
    "version": "1.0.0",
    "description": "Windowed summary of visits, downloads and attribution plus recent activity feeds.",
    "author": "maya",
}
