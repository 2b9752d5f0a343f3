from __future__ import annotations

import threading

import pytest

from photo_story.adapters.memory_chapter_store import InMemoryChapterStore
from photo_story.domain.errors import StorageFailureError


def test_create_assigns_identity_timestamp_and_defaults() -> None:
    store = InMemoryChapterStore()
    chapter = store.create(image_url="https://img.example/a.jpg", narrative="A", chapter_number=1)

    assert chapter.chapter_id
    assert chapter.created_at_utc.tzinfo is not None
    assert chapter.user_id is None
    assert chapter.connections == ()
    assert chapter.tags == ()
    assert store.get_by_id(chapter.chapter_id) == chapter
    assert store.get_by_id("missing-chapter-id") is None


def test_list_all_orders_by_chapter_number_not_insertion() -> None:
    store = InMemoryChapterStore()
    store.create(image_url="u3", narrative="third", chapter_number=3)
    store.create(image_url="u1", narrative="first", chapter_number=1)
    store.create(image_url="u2", narrative="second", chapter_number=2)

    listed = store.list_all()

    assert [chapter.chapter_number for chapter in listed] == [1, 2, 3]
    assert [chapter.narrative for chapter in listed] == ["first", "second", "third"]
    assert store.count() == 3


def test_duplicate_or_non_positive_chapter_number_is_a_storage_failure() -> None:
    store = InMemoryChapterStore()
    store.create(image_url="u1", narrative="first", chapter_number=1)

    with pytest.raises(StorageFailureError):
        store.create(image_url="u1b", narrative="dup", chapter_number=1)
    with pytest.raises(StorageFailureError):
        store.create(image_url="u0", narrative="zero", chapter_number=0)
    assert store.count() == 1


def test_delete_all_empties_store_and_frees_numbers() -> None:
    store = InMemoryChapterStore()
    for number in range(1, 4):
        store.create(image_url=f"u{number}", narrative=f"n{number}", chapter_number=number)

    store.delete_all()

    assert store.list_all() == []
    again = store.create(image_url="u1", narrative="restart", chapter_number=1)
    assert again.chapter_number == 1


def test_sequences_are_copied_into_tuples() -> None:
    store = InMemoryChapterStore()
    tags = ["cat", "indoor"]
    chapter = store.create(image_url="u", narrative="n", chapter_number=1, tags=tags)
    tags.append("mutated")
    assert chapter.tags == ("cat", "indoor")


def test_concurrent_creates_with_distinct_numbers_are_all_kept() -> None:
    store = InMemoryChapterStore()

    def worker(number: int) -> None:
        store.create(image_url=f"u{number}", narrative=f"n{number}", chapter_number=number)

    threads = [threading.Thread(target=worker, args=(number,)) for number in range(1, 51)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [chapter.chapter_number for chapter in store.list_all()] == list(range(1, 51))
