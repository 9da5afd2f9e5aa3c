#!/usr/bin/env python3
"""
Notelytix - Domain Models
ドメイン層：セッション状態・文字起こし行・エラー情報（外部依存なし）
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

DEFAULT_TITLE = "Untitled meeting"


class SessionState(StrEnum):
    """セッションのライフサイクル状態（常にいずれか1つ）"""

    IDLE = "idle"
    CONNECTING = "connecting"
    RECORDING = "recording"
    PAUSED = "paused"
    BUFFERING = "buffering"
    ERROR = "error"
    STOPPED = "stopped"


class ErrorCode(StrEnum):
    """ERROR状態の原因"""

    HANDSHAKE_FAILURE = "handshake_failure"
    TRANSPORT_FAILURE = "transport_failure"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ErrorInfo:
    """ERROR状態に付随するエラー情報"""

    code: ErrorCode
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class TranscriptFragment:
    """
    文字起こしソースから届く1単位の発話

    captured_at は time.monotonic() 基準の取得時刻（Noneなら受信時刻を使う）
    """

    speaker: str
    text: str
    captured_at: float | None = None


def format_elapsed(seconds: float) -> str:
    """経過秒数を MM:SS（1時間以上は HH:MM:SS）に整形"""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TranscriptLine:
    """文字起こし済みの1行（セッション内で id は一意）"""

    id: int
    speaker: str
    text: str
    timestamp: float  # セッション開始からの経過秒数

    @property
    def display_time(self) -> str:
        """表示用の経過時間"""
        return format_elapsed(self.timestamp)


@dataclass(frozen=True)
class SummaryArtifact:
    """要約コラボレータが返す成果物（内容は不透明）"""

    content: str
    model: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class SessionSnapshot:
    """
    ある時点のセッション状態のスナップショット

    状態・エラー・文字起こしは同一ロック内で取得されるため、
    実在した一時点の整合した組み合わせになる。
    """

    id: str
    title: str
    state: SessionState
    transcript: tuple[TranscriptLine, ...]
    started_at: datetime | None
    last_error: ErrorInfo | None
    summary: SummaryArtifact | None = None

    @property
    def duration_seconds(self) -> float:
        """最終行までの経過秒数"""
        return self.transcript[-1].timestamp if self.transcript else 0.0
