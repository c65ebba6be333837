"""
Test: Voice Synthesis Cache

Verifies that:
1. The current dialogue line and the next dialogue line are voiced
2. Narration and already-voiced lines are never requested
3. Duplicate triggers never issue a second request for a line
4. Failures resolve the line without audio and aren't retried
5. Voices for a previous session are dropped

Run: python tests/test_voice_cache.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from config import DEFAULT_VOICE
from models.session import Session
from player import PlaybackStateMachine

from fakes import FakeGateway, make_concept, make_scene


def _loaded(gateway, scenes, start_from="start"):
    # threshold=0 keeps prefetch out of the way
    machine = PlaybackStateMachine(gateway, threshold=0)
    machine.load_session(Session(make_concept(), scenes), start_from=start_from)
    return machine


def test_current_and_lookahead_requested():
    async def scenario():
        gateway = FakeGateway()
        machine = _loaded(gateway, [make_scene(1)])
        await machine.voices.wait_idle()

        assert gateway.calls["voice"] == 2
        (aria_prompt, aria_voice), (bob_prompt, bob_voice) = gateway.voice_requests
        assert aria_prompt == 'Speak this line as Aria, who is described as: "A bold sky pirate". The line is: "Hello there."'
        assert aria_voice == "Zephyr"
        assert "Bob" in bob_prompt and bob_voice == "Puck"

        # Both clips persisted onto the scene
        assert sorted(machine.state.history[0].voice_urls) == [0, 2]
        assert machine.voices.entries[(0, 0)].resolved
        assert machine.voices.url_for(2) == machine.state.history[0].voice_urls[2]

    asyncio.run(scenario())


def test_narration_is_skipped():
    async def scenario():
        gateway = FakeGateway()
        text = ": Rain falls.\n: Thunder.\nAria: Run!"
        machine = _loaded(gateway, [make_scene(1, text)])
        await machine.voices.wait_idle()

        assert gateway.calls["voice"] == 1
        assert list(machine.state.history[0].voice_urls) == [2]

    asyncio.run(scenario())


def test_duplicate_trigger_is_ignored():
    async def scenario():
        gateway = FakeGateway()
        gateway.voice_gate = asyncio.Event()
        machine = _loaded(gateway, [make_scene(1)])
        await asyncio.sleep(0)
        assert gateway.calls["voice"] == 2

        assert machine.voices.request(0) is False
        machine.jump_to(0, 0)
        machine.jump_to(0, 0)
        await asyncio.sleep(0)
        assert gateway.calls["voice"] == 2
        assert machine.voices.entries[(0, 0)].in_progress

        gateway.voice_gate.set()
        await machine.voices.wait_idle()
        assert not machine.voices.entries[(0, 0)].in_progress

    asyncio.run(scenario())


def test_persisted_voice_not_regenerated():
    async def scenario():
        gateway = FakeGateway()
        machine = _loaded(gateway, [make_scene(1, voice_urls={0: "/assets/outputs/voices/saved.wav"})])
        await machine.voices.wait_idle()

        assert gateway.calls["voice"] == 1
        assert "Bob" in gateway.voice_requests[0][0]
        assert machine.state.history[0].voice_urls[0] == "/assets/outputs/voices/saved.wav"

    asyncio.run(scenario())


def test_failure_resolves_without_audio():
    async def scenario():
        gateway = FakeGateway()
        gateway.fail = {"voice"}
        machine = _loaded(gateway, [make_scene(1)])
        await machine.voices.wait_idle()

        entry = machine.voices.entries[(0, 0)]
        assert entry.resolved and entry.url is None and not entry.in_progress
        assert machine.state.history[0].voice_urls == {}
        assert machine.state.notice is None

        # Revisiting the line doesn't retry
        machine.advance_line()
        machine.jump_to(0, 0)
        await machine.voices.wait_idle()
        assert gateway.calls["voice"] == 2

    asyncio.run(scenario())


def test_unknown_speaker_uses_default_voice():
    async def scenario():
        gateway = FakeGateway()
        machine = _loaded(gateway, [make_scene(1, "Stranger: Who goes there?")])
        await machine.voices.wait_idle()

        prompt, voice = gateway.voice_requests[0]
        assert voice == DEFAULT_VOICE
        assert prompt == (
            'Speak this line as the character "Stranger". '
            'Scene context: "Scene 1 description". The line is: "Who goes there?"'
        )

    asyncio.run(scenario())


def test_scene_change_seeds_from_scene():
    async def scenario():
        gateway = FakeGateway()
        machine = _loaded(gateway, [make_scene(1), make_scene(2)])
        await machine.voices.wait_idle()
        assert gateway.calls["voice"] == 2

        machine.jump_to(1, 0)
        await machine.voices.wait_idle()
        assert gateway.calls["voice"] == 4

        # Back to scene 0: every dialogue line there is already voiced
        machine.jump_to(0, 0)
        machine.advance_line()
        await machine.voices.wait_idle()
        assert gateway.calls["voice"] == 4
        assert machine.voices.url_for(0) == machine.state.history[0].voice_urls[0]

    asyncio.run(scenario())


def test_returning_to_scene_keeps_in_flight_requests():
    async def scenario():
        gateway = FakeGateway()
        gateway.voice_gate = asyncio.Event()
        machine = _loaded(gateway, [make_scene(1), make_scene(2)])
        await asyncio.sleep(0)
        assert gateway.calls["voice"] == 2

        # Leave and come back before anything resolves
        machine.jump_to(1, 0)
        machine.jump_to(0, 0)
        await asyncio.sleep(0)
        assert gateway.calls["voice"] == 4
        assert machine.voices.entries[(0, 0)].in_progress
        assert machine.voices.entries[(1, 0)].in_progress

        gateway.voice_gate.set()
        await machine.voices.wait_idle()
        assert gateway.calls["voice"] == 4
        assert sorted(machine.state.history[0].voice_urls) == [0, 2]
        assert sorted(machine.state.history[1].voice_urls) == [0, 2]
        assert machine.voices.url_for(0) == machine.state.history[0].voice_urls[0]

    asyncio.run(scenario())


def test_previous_session_voice_dropped():
    async def scenario():
        gateway = FakeGateway()
        gateway.voice_gate = asyncio.Event()
        first = make_scene(1)
        machine = _loaded(gateway, [first])
        await asyncio.sleep(0)

        machine.load_session(Session(make_concept(), [make_scene(7, ": Quiet.")]))
        gateway.voice_gate.set()
        await machine.voices.wait_idle()

        assert first.voice_urls == {}
        assert machine.state.history[0].voice_urls == {}

    asyncio.run(scenario())


if __name__ == "__main__":
    print("=" * 60)
    print("TEST: Voice Synthesis Cache")
    print("=" * 60)
    for test in [
        test_current_and_lookahead_requested,
        test_narration_is_skipped,
        test_duplicate_trigger_is_ignored,
        test_persisted_voice_not_regenerated,
        test_failure_resolves_without_audio,
        test_unknown_speaker_uses_default_voice,
        test_scene_change_seeds_from_scene,
        test_returning_to_scene_keeps_in_flight_requests,
        test_previous_session_voice_dropped,
    ]:
        test()
        print(f"✓ {test.__name__}")
    print("\n✅ All voice cache tests passed!")
