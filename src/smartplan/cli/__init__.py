"""
Command-line surface.

Components:
- main.py: entry point (`smartplan`)
- bootstrap.py: composition root that builds AppState
- commands.py: slash-command registry and handlers
"""
