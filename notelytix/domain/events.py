#!/usr/bin/env python3
"""
Notelytix - Events (Pub/Sub)
ドメイン層: プレゼンテーション層・通知コラボレータへの通知
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from blinker import Signal

from .models import ErrorInfo, SessionState, SummaryArtifact, TranscriptLine

# ========================================
# イベント名定数
# ========================================
EVENT_STATE_CHANGED = "state_changed"
EVENT_LINE_APPENDED = "line_appended"
EVENT_SUMMARY_GENERATED = "summary_generated"
EVENT_MESSAGE_POSTED = "message_posted"


# ========================================
# イベント型定義
# ========================================


class MessageLevel(str, Enum):
    """メッセージレベル"""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class StateChangedEvent:
    """
    状態遷移イベント

    遷移が確定した後に、確定した順序で発行される。
    ERROR状態への遷移時のみ error が設定される。
    """

    session_id: str
    previous: SessionState
    state: SessionState
    error: ErrorInfo | None = None


@dataclass(frozen=True)
class LineAppendedEvent:
    """
    文字起こし行追記イベント
    """

    session_id: str
    line: TranscriptLine


@dataclass(frozen=True)
class SummaryGeneratedEvent:
    """
    要約生成イベント

    停止済みセッションの要約が生成された際に発行される。
    """

    session_id: str
    summary: SummaryArtifact


@dataclass(frozen=True)
class MessagePostedEvent:
    """
    メッセージ投稿イベント

    システム状態の変化やユーザーへの通知メッセージを表示する際に発行される。
    timestampは省略時に自動的に現在時刻が設定される。
    """

    message: str  # 表示するメッセージ
    level: MessageLevel  # メッセージレベル（INFO/SUCCESS/WARNING/ERROR）
    timestamp: datetime = field(default_factory=datetime.now)


# ========================================
# グローバルシグナル定義
# ========================================

state_changed = Signal(EVENT_STATE_CHANGED)  # StateChangedEvent
line_appended = Signal(EVENT_LINE_APPENDED)  # LineAppendedEvent
summary_generated = Signal(EVENT_SUMMARY_GENERATED)  # SummaryGeneratedEvent
message_posted = Signal(EVENT_MESSAGE_POSTED)  # MessagePostedEvent


def post_message(sender: object, message: str, level: MessageLevel) -> None:
    """message_posted シグナルを発行するショートカット"""
    message_posted.send(sender, event=MessagePostedEvent(message=message, level=level))
