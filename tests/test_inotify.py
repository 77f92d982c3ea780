"""Tests for the single-instance inotify reader."""

import asyncio
import os

import pytest
from watchdog.utils import platform

if not platform.is_linux():
    pytest.skip("inotify is only available on Linux", allow_module_level=True)

from watchdog.observers.inotify_c import InotifyConstants, InotifyEvent

from treewatch.watchdog.events import EventType, is_of_interest
from treewatch.watchdog.inotify import InotifyTree, convert_inotify_event
from treewatch.watchdog.watcher import NotificationAdapter, register_subtree


def inotify_event(mask, name=b"main.txt", directory=b"/proj"):
    return InotifyEvent(1, mask, 0, name, os.path.join(directory, name))


@pytest.mark.parametrize("mask, expected", [
    (InotifyConstants.IN_MODIFY, EventType.WRITE),
    (InotifyConstants.IN_CREATE, EventType.CREATE),
    (InotifyConstants.IN_MOVED_TO, EventType.CREATE),
    (InotifyConstants.IN_DELETE, EventType.REMOVE),
    (InotifyConstants.IN_MOVED_FROM, EventType.OTHER),
    (InotifyConstants.IN_ATTRIB, EventType.OTHER),
])
def test_classification_follows_mask(mask, expected):
    raw_events = convert_inotify_event(inotify_event(mask))

    assert len(raw_events) == 1
    assert raw_events[0].path == "/proj/main.txt"
    assert raw_events[0].event_type == expected


def test_attribute_change_is_not_of_interest():
    raw_event, = convert_inotify_event(inotify_event(InotifyConstants.IN_ATTRIB))

    assert not is_of_interest(raw_event)


def test_watch_bookkeeping_is_other():
    ignored = InotifyEvent(1, InotifyConstants.IN_IGNORED, 0, b"", b"/proj/docs")
    moved_self = InotifyEvent(1, InotifyConstants.IN_MOVE_SELF, 0, b"", b"/proj/docs")

    assert convert_inotify_event(ignored)[0].event_type == EventType.OTHER
    assert convert_inotify_event(moved_self)[0].event_type == EventType.OTHER


def test_deleted_watched_directory_is_remove():
    deleted = InotifyEvent(1, InotifyConstants.IN_DELETE_SELF, 0, b"", b"/proj/docs")

    raw_event, = convert_inotify_event(deleted)

    assert raw_event.path == "/proj/docs"
    assert raw_event.event_type == EventType.REMOVE


def test_reader_starts_with_first_watch(tmp_path):
    tree = InotifyTree(handler=None)
    assert not tree.is_alive()

    tree.add_watch(str(tmp_path))
    try:
        assert tree.is_alive()
    finally:
        tree.stop()
        tree.join(timeout=5)

    assert not tree.is_alive()


def test_reader_rejects_missing_directory(tmp_path):
    tree = InotifyTree(handler=None)

    with pytest.raises(OSError):
        tree.add_watch(str(tmp_path / "missing"))
    assert not tree.is_alive()


@pytest.mark.asyncio
async def test_adapter_uses_inotify_on_linux(project_tree):
    adapter = NotificationAdapter()
    adapter.open(asyncio.get_running_loop())
    try:
        assert adapter.uses_inotify
        register_subtree(adapter, str(project_tree), [".git"])
        assert adapter.observer.is_alive()
    finally:
        adapter.close()


@pytest.mark.asyncio
async def test_adapter_watches_hundreds_of_directories(tmp_path):
    root = tmp_path / "wide"
    for index in range(300):
        (root / f"d{index:03d}").mkdir(parents=True)

    adapter = NotificationAdapter()
    adapter.open(asyncio.get_running_loop())
    try:
        registered = register_subtree(adapter, str(root), [])

        assert len(registered) == 301
        assert len(adapter.watched_paths) == 301
        assert adapter.check_health() is None
    finally:
        adapter.close()
