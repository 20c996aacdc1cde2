"""
Notes subsystem.

Components:
- note_models.py: Note record + relative-age formatting
- note_store.py: NoteRepository, per-user CRUD over a DocumentBackend
"""
