#!/usr/bin/env python3
"""
Notelytix - Session State Machine
セッションライフサイクルの状態遷移表と遷移関数（副作用なし）
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType

from .models import SessionState


class SessionEvent(Enum):
    """状態遷移を引き起こすイベント（ユーザーコマンド + バックエンド通知 + タイムアウト）"""

    START = auto()
    HANDSHAKE_SUCCEEDED = auto()
    HANDSHAKE_FAILED = auto()
    PAUSE = auto()
    RESUME = auto()
    STOP = auto()
    BACKPRESSURE = auto()
    DRAINED = auto()
    TRANSPORT_FAILED = auto()
    TIMED_OUT = auto()
    RETRY = auto()

    @property
    def command(self) -> str:
        """エラーメッセージ用のコマンド名"""
        return self.name.lower()


_S = SessionState
_E = SessionEvent

TRANSITIONS: Mapping[tuple[SessionState, SessionEvent], SessionState] = MappingProxyType(
    {
        # 開始（IDLE/STOPPED/ERROR から受け付ける）
        (_S.IDLE, _E.START): _S.CONNECTING,
        (_S.STOPPED, _E.START): _S.CONNECTING,
        (_S.ERROR, _E.START): _S.CONNECTING,
        # ハンドシェイク
        (_S.CONNECTING, _E.HANDSHAKE_SUCCEEDED): _S.RECORDING,
        (_S.CONNECTING, _E.HANDSHAKE_FAILED): _S.ERROR,
        (_S.CONNECTING, _E.TIMED_OUT): _S.ERROR,
        # 録音中
        (_S.RECORDING, _E.PAUSE): _S.PAUSED,
        (_S.RECORDING, _E.STOP): _S.STOPPED,
        (_S.RECORDING, _E.BACKPRESSURE): _S.BUFFERING,
        (_S.RECORDING, _E.TRANSPORT_FAILED): _S.ERROR,
        # 一時停止中
        (_S.PAUSED, _E.RESUME): _S.RECORDING,
        (_S.PAUSED, _E.STOP): _S.STOPPED,
        # バッファリング中
        (_S.BUFFERING, _E.DRAINED): _S.RECORDING,
        (_S.BUFFERING, _E.STOP): _S.STOPPED,
        (_S.BUFFERING, _E.TRANSPORT_FAILED): _S.ERROR,
        (_S.BUFFERING, _E.TIMED_OUT): _S.ERROR,
        # エラーからの復帰
        (_S.ERROR, _E.RETRY): _S.IDLE,
    }
)

# 有界時間内に必ず抜け出さなければならない状態
TRANSIENT_STATES = frozenset({SessionState.CONNECTING, SessionState.BUFFERING})


@dataclass(frozen=True)
class TransitionResult:
    """
    遷移関数の評価結果

    Attributes:
        source: 遷移前の状態
        event: 適用したイベント
        target: 遷移後の状態（Noneなら拒否）
    """

    source: SessionState
    event: SessionEvent
    target: SessionState | None

    @property
    def accepted(self) -> bool:
        """遷移が受理されたかどうか"""
        return self.target is not None


def transition(state: SessionState, event: SessionEvent) -> TransitionResult:
    """
    現在の状態にイベントを適用した結果を返す（例外は投げない）

    Args:
        state: 現在の状態
        event: 適用するイベント

    Returns:
        TransitionResult: 受理なら target に遷移先、拒否なら target=None
    """
    return TransitionResult(source=state, event=event, target=TRANSITIONS.get((state, event)))


def allowed_events(state: SessionState) -> frozenset[SessionEvent]:
    """指定状態で受理されるイベントの集合"""
    return frozenset(event for (source, event) in TRANSITIONS if source == state)
