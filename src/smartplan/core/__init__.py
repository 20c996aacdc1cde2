"""
Core wiring shared by every subsystem.

Components:
- ports.py: Protocols for storage, LLM and outbound messaging
- clock.py: local wall-clock helpers (naive local date-times)
- state.py: AppState, the object connectors and commands operate on
"""
