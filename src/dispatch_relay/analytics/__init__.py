"""
Analytics sync boundary.

Components:
- events.py: SchedulerEvent set, typed payloads and the EventChannel observer
- publisher.py: PublisherService, posts JSON status messages to a topic
- sync_scheduler.py: AnalyticsSyncScheduler driving an opaque AnalyticsSource
"""
