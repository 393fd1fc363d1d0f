"""Facility Ready Board backend.

Tracks the day's resident pickups and notifies families and staff when a
resident is ready in the lobby.

Modules:
    - core: Configuration, database, Redis, Celery, logging and metrics
    - modules.resident: Residents and the database keepalive
    - modules.transport: Pickup events and their change feed
    - modules.notification: SMS, web push fan-out and the audit log
    - modules.monitor: Board change detection and operator alerts
"""

__version__ = "0.1.0"
