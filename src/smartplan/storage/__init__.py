"""
Storage subsystem.

Components:
- kv_store.py: string key -> string value stores (SQLite, in-memory)
- backends.py: document collections on top of a key-value blob or a SQLite table
"""
