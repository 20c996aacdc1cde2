# tests/test_note_store.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from smartplan.errors import NotFoundError, ValidationError
from smartplan.notes.note_models import describe_age
from smartplan.notes.note_store import NoteRepository
from smartplan.storage.backends import BlobCollectionBackend
from smartplan.storage.kv_store import InMemoryKeyValueStore

from .fakes import FixedClock


@pytest.fixture()
def notes(clock: FixedClock) -> NoteRepository:
    return NoteRepository(BlobCollectionBackend(InMemoryKeyValueStore(), "smartplan:notes"), now=clock)


def test_note_create_edit_delete(notes: NoteRepository, clock: FixedClock) -> None:
    note_id = notes.create_note("u1", "  buy milk  ")
    created = notes.get_notes("u1")[0]
    assert created.content == "buy milk"
    assert created.created_at == created.updated_at == clock.now

    clock.advance(minutes=10)
    edited = notes.update_note(note_id, "buy oat milk")
    assert edited.content == "buy oat milk"
    assert edited.updated_at == clock.now
    assert edited.created_at == created.created_at

    notes.delete_note(note_id)
    notes.delete_note(note_id)
    assert notes.get_notes("u1") == []


def test_notes_newest_edit_first_and_per_user(notes: NoteRepository, clock: FixedClock) -> None:
    first = notes.create_note("u1", "first")
    clock.advance(minutes=1)
    notes.create_note("u1", "second")
    clock.advance(minutes=1)
    notes.create_note("u2", "not yours")
    clock.advance(minutes=1)
    notes.update_note(first, "first, edited")

    assert [n.content for n in notes.get_notes("u1")] == ["first, edited", "second"]


def test_note_requires_content(notes: NoteRepository) -> None:
    with pytest.raises(ValidationError):
        notes.create_note("u1", "   ")
    note_id = notes.create_note("u1", "x")
    with pytest.raises(ValidationError):
        notes.update_note(note_id, "")


def test_update_unknown_note_fails(notes: NoteRepository) -> None:
    with pytest.raises(NotFoundError):
        notes.update_note("note_missing", "text")


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(seconds=20), "Just now"),
        (timedelta(minutes=5), "5m ago"),
        (timedelta(hours=3), "3h ago"),
        (timedelta(days=2), "2d ago"),
        (timedelta(days=30), "2026-09-19"),
    ],
)
def test_describe_age(delta: timedelta, expected: str) -> None:
    now = datetime(2026, 10, 19, 12, 0)
    assert describe_age(now - delta, now) == expected
