import asyncio
import pytest
from hospital_admin.notifications import NotificationChannel, NotificationKind, NotificationState


def _channel():
    return NotificationChannel(dwell=0.1, enter_delay=0.01, exit_duration=0.02)

@pytest.mark.asyncio
async def test_notification_lifecycle():
    channel = _channel()
    note = channel.notify("Patient added successfully.")

    assert note.kind is NotificationKind.SUCCESS
    assert note.state is NotificationState.ENTERING
    assert channel.active() == [note]

    await asyncio.sleep(0.03)
    assert channel.get(note.id).state is NotificationState.VISIBLE

    await asyncio.sleep(0.15)
    assert channel.active() == []

@pytest.mark.asyncio
async def test_manual_dismiss_removes_before_dwell():
    channel = NotificationChannel(dwell=5, enter_delay=0.01, exit_duration=0.02)
    note = channel.notify("Failed to fetch doctors.", "error")

    assert channel.dismiss(note.id) is True
    assert note.state is NotificationState.EXITING
    # already exiting
    assert channel.dismiss(note.id) is False

    await asyncio.sleep(0.05)
    assert channel.get(note.id) is None
    channel.close()

@pytest.mark.asyncio
async def test_notifications_are_independent_and_ordered():
    channel = NotificationChannel(dwell=5, enter_delay=0.01, exit_duration=0.01)
    first = channel.notify("one", NotificationKind.INFO)
    second = channel.notify("two", NotificationKind.ERROR)
    third = channel.notify("three")

    assert [n.message for n in channel.active()] == ["one", "two", "three"]

    channel.dismiss(second.id)
    await asyncio.sleep(0.03)
    assert [n.id for n in channel.active()] == [first.id, third.id]
    assert all(n.state is NotificationState.VISIBLE for n in channel.active())
    channel.close()
    assert channel.active() == []

@pytest.mark.asyncio
async def test_unknown_kind_rejected():
    with pytest.raises(ValueError):
        _channel().notify("hello", "destructive")

@pytest.mark.asyncio
async def test_dismiss_unknown_id():
    assert _channel().dismiss(42) is False
