"""LiveIngestSimulator / SimulatedBackend のテスト"""

import random
import threading
import time

import pytest

from notelytix.domain import (
    AudioSettings,
    HandshakeOutcome,
    NotRecording,
    SimulatorSettings,
    TranscriptFragment,
)
from notelytix.infrastructure.ingest import LiveIngestSimulator, SimulatedBackend


class _Listener:
    """バックエンド通知の記録"""

    def __init__(self) -> None:
        self.events: list[str] = []
        self.done = threading.Event()

    def handshake_succeeded(self) -> None:
        self.events.append("succeeded")
        self.done.set()

    def handshake_failed(self, message: str) -> None:
        self.events.append(f"failed: {message}")
        self.done.set()

    def backpressure(self) -> None:
        self.events.append("backpressure")

    def drained(self) -> None:
        self.events.append("drained")

    def transport_failed(self, message: str) -> None:
        self.events.append(f"transport: {message}")

    def submit_fragment(self, fragment: TranscriptFragment) -> None:
        return None


def _settings(**overrides: object) -> SimulatorSettings:
    params: dict[str, object] = {"tick_interval_sec": 0.01, "handshake_delay_sec": 0.01}
    params.update(overrides)
    return SimulatorSettings(**params)


class TestNextFragment:
    """1tick分の生成判定のテスト"""

    def test_probability_one_always_emits(self) -> None:
        simulator = LiveIngestSimulator(_settings(emission_probability=1.0, seed=1))
        fragments = [simulator.next_fragment() for _ in range(20)]
        assert all(f is not None for f in fragments)

    def test_probability_zero_never_emits(self) -> None:
        simulator = LiveIngestSimulator(_settings(emission_probability=0.0, seed=1))
        assert all(simulator.next_fragment() is None for _ in range(20))

    def test_fragments_use_configured_speakers_and_phrases(self) -> None:
        settings = _settings(
            emission_probability=1.0, speakers=["Alice", "Bob"], phrases=["hi", "bye"]
        )
        simulator = LiveIngestSimulator(settings, rng=random.Random(3))
        for _ in range(20):
            fragment = simulator.next_fragment()
            assert fragment is not None
            assert fragment.speaker in ("Alice", "Bob")
            assert fragment.text in ("hi", "bye")
            assert fragment.captured_at is not None

    def test_same_seed_is_reproducible(self) -> None:
        """同じシードなら同じ列を生成"""

        def run() -> list[tuple[str, str] | None]:
            simulator = LiveIngestSimulator(_settings(emission_probability=0.5, seed=42))
            return [
                (f.speaker, f.text) if (f := simulator.next_fragment()) else None
                for _ in range(30)
            ]

        assert run() == run()


class TestIngestLoop:
    """生成スレッドのテスト"""

    def test_emits_at_most_one_fragment_per_tick(self) -> None:
        received: list[TranscriptFragment] = []
        simulator = LiveIngestSimulator(_settings(emission_probability=1.0, seed=0))
        simulator.start(received.append)
        time.sleep(0.2)
        simulator.cancel()
        simulator.join()

        # 0.2秒 / 0.01秒tick を大きく超えることはない
        assert 0 < len(received) <= 25
        assert simulator.emitted == len(received)

    def test_cancel_stops_emission(self) -> None:
        """cancel() 後は新たに送信しない"""
        received: list[TranscriptFragment] = []
        simulator = LiveIngestSimulator(_settings(emission_probability=1.0, seed=0))
        simulator.start(received.append)
        time.sleep(0.05)
        simulator.cancel()
        simulator.join()
        count = len(received)

        time.sleep(0.05)
        assert len(received) == count
        assert simulator.is_running is False

    def test_stops_when_sink_rejects(self) -> None:
        """送信先がNotRecordingを返したらループを終了"""
        calls: list[TranscriptFragment] = []

        def sink(fragment: TranscriptFragment) -> None:
            calls.append(fragment)
            raise NotRecording()

        simulator = LiveIngestSimulator(_settings(emission_probability=1.0, seed=0))
        simulator.start(sink)
        simulator.join(timeout=1.0)

        assert len(calls) == 1
        assert simulator.emitted == 0

    def test_start_twice_keeps_single_thread(self) -> None:
        received: list[TranscriptFragment] = []
        simulator = LiveIngestSimulator(_settings(emission_probability=0.0))
        simulator.start(received.append)
        first = simulator._thread
        simulator.start(received.append)
        assert simulator._thread is first
        simulator.cancel()
        simulator.join()


class TestSimulatedBackend:
    """模擬バックエンドのテスト"""

    @pytest.mark.parametrize(
        ("outcome", "expected_prefix"),
        [(HandshakeOutcome.SUCCESS, "succeeded"), (HandshakeOutcome.FAILURE, "failed")],
    )
    def test_handshake_outcome(
        self, outcome: HandshakeOutcome, expected_prefix: str
    ) -> None:
        backend = SimulatedBackend(_settings(handshake_outcome=outcome))
        listener = _Listener()
        backend.connect(AudioSettings(), listener)

        assert listener.done.wait(timeout=1.0)
        assert listener.events[0].startswith(expected_prefix)

    def test_silent_handshake_never_reports(self) -> None:
        backend = SimulatedBackend(_settings(handshake_outcome=HandshakeOutcome.SILENT))
        listener = _Listener()
        backend.connect(AudioSettings(), listener)

        assert not listener.done.wait(timeout=0.1)
        assert listener.events == []

    def test_disconnect_cancels_pending_handshake(self) -> None:
        backend = SimulatedBackend(_settings(handshake_delay_sec=0.1))
        listener = _Listener()
        backend.connect(AudioSettings(), listener)
        backend.disconnect()

        assert not listener.done.wait(timeout=0.3)
        assert backend.is_connected is False

    def test_fault_injection_reaches_listener(self) -> None:
        backend = SimulatedBackend(_settings(handshake_outcome=HandshakeOutcome.SILENT))
        listener = _Listener()
        backend.connect(AudioSettings(), listener)

        backend.report_backpressure()
        backend.report_drained()
        backend.report_transport_failure()
        assert listener.events == ["backpressure", "drained", "transport: Connection lost"]

    def test_fault_injection_without_connection_is_noop(self) -> None:
        backend = SimulatedBackend(_settings())
        backend.report_backpressure()
        backend.report_transport_failure("x")
        assert backend.is_connected is False

    def test_backend_info_includes_audio_settings(self) -> None:
        backend = SimulatedBackend(_settings(handshake_outcome=HandshakeOutcome.SILENT))
        backend.connect(AudioSettings(format="pcm", sample_rate="48kHz"), _Listener())
        assert backend.get_backend_info() == "Simulated backend (pcm16, 48000 Hz)"

    def test_create_source_returns_fresh_simulator(self) -> None:
        backend = SimulatedBackend(_settings())
        assert backend.create_source() is not backend.create_source()

    def test_sources_share_one_random_sequence(self) -> None:
        """再開ごとの供給源は同じ列を繰り返さず、バックエンド全体ではシードで再現可能"""
        settings = _settings(emission_probability=0.5, seed=42)

        def draws(backend: SimulatedBackend) -> list[list[tuple[str, str] | None]]:
            sequences = []
            for _ in range(2):
                source = backend.create_source()
                assert isinstance(source, LiveIngestSimulator)
                sequences.append(
                    [
                        (f.speaker, f.text) if (f := source.next_fragment()) else None
                        for _ in range(30)
                    ]
                )
            return sequences

        first, second = draws(SimulatedBackend(settings))
        assert first != second
        assert draws(SimulatedBackend(settings)) == [first, second]
