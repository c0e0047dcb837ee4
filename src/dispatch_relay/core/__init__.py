"""
Core building blocks shared by every stage.

Components:
- timing.py: cooperative delay and the Profiler timing helper
- results.py: Ok / Exhausted / TimedOut result values
- ports.py: Protocols the pipeline depends on
- state.py: AppState wired by the composition root
"""
