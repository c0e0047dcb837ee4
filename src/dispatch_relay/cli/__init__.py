"""
Command-line entrypoint.

Components:
- bootstrap.py: composition root (settings -> AppState)
- commands.py: CommandRegistry and the built-in commands
- main.py: `dispatch-relay` console script
"""
