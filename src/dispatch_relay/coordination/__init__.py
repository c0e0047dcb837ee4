"""
In-process coordination primitives.

Components:
- queue_broker.py: named FIFO queues with a per-queue consumer loop
- keyed_lock.py: named mutual exclusion with bounded acquisition retries

Both hold volatile, process-lifetime state and assume the single-threaded
asyncio model; add a mutex around mutation before sharing them across threads.
"""
