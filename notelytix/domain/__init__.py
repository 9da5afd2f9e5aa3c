#!/usr/bin/env python3
"""
Notelytix - Domain Layer
ドメイン層：エンティティ、状態遷移、文字起こしストア、設定
"""

# モデルとデータ構造
from .models import (
    DEFAULT_TITLE,
    ErrorCode,
    ErrorInfo,
    SessionSnapshot,
    SessionState,
    SummaryArtifact,
    TranscriptFragment,
    TranscriptLine,
    format_elapsed,
)

# エラー
from .errors import (
    AlreadyActive,
    FragmentValidationError,
    InvalidTransition,
    NotRecording,
    SessionError,
    SummaryError,
    SummaryUnavailable,
)

# 状態遷移
from .state_machine import (
    TRANSIENT_STATES,
    TRANSITIONS,
    SessionEvent,
    TransitionResult,
    allowed_events,
    transition,
)

# 文字起こしストア
from .transcript import TranscriptStore, validate_fragment

# イベント（Pub/Sub）
from .events import (
    LineAppendedEvent,
    MessageLevel,
    MessagePostedEvent,
    StateChangedEvent,
    SummaryGeneratedEvent,
    line_appended,
    message_posted,
    post_message,
    state_changed,
    summary_generated,
)

# 設定スキーマ（Pydantic）
from .settings import (
    AppSettings,
    AudioFormat,
    AudioSettings,
    HandshakeOutcome,
    LLMBackend,
    SampleRate,
    SessionSettings,
    Settings,
    SimulatorSettings,
    SummarySettings,
)

__all__ = [
    # モデル
    "DEFAULT_TITLE",
    "ErrorCode",
    "ErrorInfo",
    "SessionSnapshot",
    "SessionState",
    "SummaryArtifact",
    "TranscriptFragment",
    "TranscriptLine",
    "format_elapsed",
    # エラー
    "AlreadyActive",
    "FragmentValidationError",
    "InvalidTransition",
    "NotRecording",
    "SessionError",
    "SummaryError",
    "SummaryUnavailable",
    # 状態遷移
    "TRANSIENT_STATES",
    "TRANSITIONS",
    "SessionEvent",
    "TransitionResult",
    "allowed_events",
    "transition",
    # 文字起こしストア
    "TranscriptStore",
    "validate_fragment",
    # イベント
    "LineAppendedEvent",
    "MessageLevel",
    "MessagePostedEvent",
    "StateChangedEvent",
    "SummaryGeneratedEvent",
    "line_appended",
    "message_posted",
    "post_message",
    "state_changed",
    "summary_generated",
    # 設定
    "AppSettings",
    "AudioFormat",
    "AudioSettings",
    "HandshakeOutcome",
    "LLMBackend",
    "SampleRate",
    "SessionSettings",
    "Settings",
    "SimulatorSettings",
    "SummarySettings",
]
