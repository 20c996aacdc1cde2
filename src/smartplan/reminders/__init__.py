"""
Reminder subsystem.

Components:
- reminder_scheduler.py: task id -> pending notification table, fed by task lifecycle events
- reminder_dispatcher.py: asyncio polling loop that delivers due reminders via a messenger
"""
