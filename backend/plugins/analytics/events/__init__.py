"""Public ingestion of tracker beacons (page views, downloads, modal opens)."""

PLUGIN_METADATA = {
    "name": "analytics/events",
    "version": "1.0.0",
    "description": "Accepts tracker beacons and stores them as visits and events.",
    "author": "maya",
}
