"""
Remote task subsystem.

Components:
- task_models.py: data structures (PollStatus, TaskProgress, CompletedTask, ...)
- tokens.py: token-tree search used to derive a task title
- task_client.py: TaskLifecycleClient (dispatch, poll, download, list, archive)
"""
