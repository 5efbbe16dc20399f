"""Configuration settings for the sync service."""

import os


SERVICE_HOST = os.environ.get("RECORDSYNC_HOST", "0.0.0.0")

SERVICE_PORT = int(os.environ.get("RECORDSYNC_PORT", "8000"))

# Seed and start the reconciliation loop when the service starts
SERVICE_AUTOSTART = os.environ.get("RECORDSYNC_AUTOSTART", "true").lower() in ("1", "true", "yes")
