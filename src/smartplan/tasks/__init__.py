"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskDraft, Priority, TaskEvent)
- task_store.py: TaskRepository, per-user CRUD over a DocumentBackend
- retention.py: which completed tasks the read-time sweep deletes
- task_views.py: today/upcoming/completed filters and grouping by date
- task_api.py: small high-level helpers used by the console (planning flow)
"""
