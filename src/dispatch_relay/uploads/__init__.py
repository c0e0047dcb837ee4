"""
Upload side effects.

Components:
- command.py: CommandUploader, runs an external upload command per artifact
- offline.py: LoggingUploader, used when no upload command is configured
"""
