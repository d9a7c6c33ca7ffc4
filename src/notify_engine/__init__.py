"""
Notify Engine

Notification dispatch and scheduling engine for subscription tracking.
"""
__version__ = "0.1.0"
