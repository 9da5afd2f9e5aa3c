"""テスト共通のフィクスチャとテストダブル"""

from collections.abc import Iterator
from typing import Any

import pytest

from notelytix.domain import (
    AudioSettings,
    LineAppendedEvent,
    MessageLevel,
    MessagePostedEvent,
    SessionSettings,
    StateChangedEvent,
    TranscriptFragment,
    line_appended,
    message_posted,
    state_changed,
)
from notelytix.infrastructure.ingest import (
    BackendListener,
    FragmentSink,
    FragmentSource,
    TranscriptionBackend,
)
from notelytix.infrastructure.session import SessionController


class FakeSource(FragmentSource):
    """テストから手動でフラグメントを流し込む供給源"""

    def __init__(self) -> None:
        self.sink: FragmentSink | None = None
        self.cancelled = False
        self.joined = False

    def start(self, sink: FragmentSink) -> None:
        self.sink = sink

    def cancel(self) -> None:
        self.cancelled = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True

    @property
    def is_running(self) -> bool:
        return self.sink is not None and not self.cancelled

    def emit(self, speaker: str = "Me", text: str = "hello") -> Any:
        assert self.sink is not None
        return self.sink(TranscriptFragment(speaker=speaker, text=text))


class FakeBackend(TranscriptionBackend):
    """ハンドシェイク結果をテストから明示的に通知するバックエンド"""

    def __init__(self) -> None:
        self.listener: BackendListener | None = None
        self.listeners: list[BackendListener] = []
        self.sources: list[FakeSource] = []
        self.audio: AudioSettings | None = None
        self.disconnects = 0

    def connect(self, audio: AudioSettings, listener: BackendListener) -> None:
        self.audio = audio
        self.listener = listener
        self.listeners.append(listener)

    def disconnect(self) -> None:
        self.disconnects += 1
        self.listener = None

    def create_source(self) -> FakeSource:
        source = FakeSource()
        self.sources.append(source)
        return source

    def get_backend_info(self) -> str:
        return "Fake backend"

    @property
    def source(self) -> FakeSource:
        """最後に生成された供給源"""
        return self.sources[-1]


class SignalRecorder:
    """グローバルシグナルの発行内容を記録"""

    def __init__(self) -> None:
        self.states: list[StateChangedEvent] = []
        self.lines: list[LineAppendedEvent] = []
        self.messages: list[MessagePostedEvent] = []

    def _on_state(self, _sender: object, event: StateChangedEvent) -> None:
        self.states.append(event)

    def _on_line(self, _sender: object, event: LineAppendedEvent) -> None:
        self.lines.append(event)

    def _on_message(self, _sender: object, event: MessagePostedEvent) -> None:
        self.messages.append(event)

    def connect(self) -> None:
        state_changed.connect(self._on_state)
        line_appended.connect(self._on_line)
        message_posted.connect(self._on_message)

    def disconnect(self) -> None:
        state_changed.disconnect(self._on_state)
        line_appended.disconnect(self._on_line)
        message_posted.disconnect(self._on_message)

    def messages_at(self, level: MessageLevel) -> list[str]:
        return [m.message for m in self.messages if m.level == level]


@pytest.fixture
def recorder() -> Iterator[SignalRecorder]:
    """シグナル記録（テスト終了時に購読解除）"""
    rec = SignalRecorder()
    rec.connect()
    yield rec
    rec.disconnect()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def audio() -> AudioSettings:
    return AudioSettings()


@pytest.fixture
def controller(backend: FakeBackend) -> Iterator[SessionController]:
    """タイムアウトが発火しない十分長い設定のコントローラ"""
    ctrl = SessionController(
        backend=backend,
        settings=SessionSettings(connect_timeout_sec=60, buffering_timeout_sec=60),
    )
    yield ctrl
    ctrl.shutdown()
