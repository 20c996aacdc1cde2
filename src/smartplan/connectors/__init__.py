"""
Connectors: how a person reaches the app.

Components:
- console_connector.py: interactive REPL + terminal messenger
- reminder_runner.py: reminder dispatcher in a background thread
"""
