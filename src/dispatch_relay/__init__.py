"""
dispatch-relay: drive remote render tasks from dispatch to upload.

Subpackages:
- core/: timing (delay, Profiler), result values, ports, app state
- tasks/: remote task lifecycle client and title extraction
- coordination/: in-process QueueBroker and KeyedLock
- pipeline/: producer loop, queue workers, orchestrator
- uploads/: upload side-effect implementations
- analytics/: analytics sync scheduler boundary (events, publisher)
- cli/: command-line entrypoint and composition root
"""

__version__ = "0.1.0"
