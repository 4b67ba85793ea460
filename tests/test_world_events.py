import asyncio
from datetime import datetime, timedelta, timezone

from nexus_builder.models import Size
from nexus_builder.world import WorldEvent, WorldEventGenerator, WorldEventType
from nexus_builder.world.events import CorruptZoneEffects, EmpBurstEffects

FIXED_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _generator(seed: str = "events") -> WorldEventGenerator:
    return WorldEventGenerator(seed, clock=lambda: FIXED_NOW)


def test_seeded_generators_produce_identical_events() -> None:
    first_generator, second_generator = _generator(), _generator()
    first = [first_generator.generate_event(Size(50, 50)) for _ in range(5)]
    second = [second_generator.generate_event(Size(50, 50)) for _ in range(5)]

    assert first == second


def test_event_fields_are_consistent() -> None:
    generator = _generator()
    for _ in range(100):
        event = generator.generate_event(Size(30, 20))
        assert 0 <= event.position.x < 30
        assert 0 <= event.position.y < 20
        assert event.timestamp == FIXED_NOW
        assert event.id.startswith(f"event_{int(FIXED_NOW.timestamp() * 1000)}_")
        assert f"({event.position.x}, {event.position.y})" in event.message
        if event.type is WorldEventType.EMP_BURST:
            assert 3 <= event.radius <= 8
            assert event.duration_ms == 30_000
            assert isinstance(event.effects, EmpBurstEffects)
        elif event.type is WorldEventType.CORRUPT_ZONE:
            assert 5 <= event.radius <= 12
            assert isinstance(event.effects, CorruptZoneEffects)
        elif event.type is WorldEventType.DATA_SURGE:
            assert 2 <= event.radius <= 5
        else:
            assert 1 <= event.radius <= 4


def test_expiry_and_coverage() -> None:
    event = _generator().generate_event(Size(50, 50))

    assert event.expires_at == FIXED_NOW + timedelta(milliseconds=event.duration_ms)
    assert not event.is_expired(FIXED_NOW)
    assert event.is_expired(event.expires_at)
    assert event.covers(event.position.x, event.position.y)
    assert not event.covers(event.position.x + event.radius + 1, event.position.y)


def test_to_dict_is_plain() -> None:
    payload = _generator().generate_event(Size(50, 50)).to_dict()

    assert isinstance(payload["type"], str)
    assert payload["timestamp"] == FIXED_NOW.isoformat()
    assert set(payload["position"]) == {"x", "y"}


def test_scheduled_event_fires_callback() -> None:
    async def _run() -> list[WorldEvent]:
        received: list[WorldEvent] = []
        fired = asyncio.Event()

        def _callback(event: WorldEvent) -> None:
            received.append(event)
            fired.set()

        generator = _generator()
        generator.schedule_random_event(Size(10, 10), _callback, delay_range_ms=(1, 5))
        await asyncio.wait_for(fired.wait(), timeout=1)
        return received

    received = asyncio.run(_run())
    assert len(received) == 1
    assert 0 <= received[0].position.x < 10


def test_scheduled_event_can_be_cancelled() -> None:
    async def _run() -> list[WorldEvent]:
        received: list[WorldEvent] = []
        handle = _generator().schedule_random_event(Size(10, 10), received.append, delay_range_ms=(20, 30))
        handle.cancel()
        await asyncio.sleep(0.06)
        return received

    assert asyncio.run(_run()) == []
