#!/usr/bin/env python3
"""
Notelytix - Domain Errors
呼び出し元に報告する例外の体系

バックエンド障害・タイムアウトは例外ではなく ErrorInfo としてERROR状態に記録される。
"""

from .models import SessionState


class SessionError(Exception):
    """セッション操作エラーの基底クラス"""


class InvalidTransition(SessionError):
    """現在の状態では実行できないコマンド（状態は変化しない）"""

    def __init__(self, state: SessionState, command: str) -> None:
        self.state = state
        self.command = command
        super().__init__(f"Cannot {command} while {state}")


class AlreadyActive(InvalidTransition):
    """進行中のセッションがあるため start() できない"""

    def __init__(self, state: SessionState) -> None:
        super().__init__(state, "start")


class NotRecording(SessionError):
    """RECORDING以外の状態で文字起こし行を追加しようとした"""

    def __init__(self, state: SessionState | None = None) -> None:
        self.state = state
        detail = f" (state: {state})" if state is not None else ""
        super().__init__(f"Transcript is not accepting lines{detail}")


class FragmentValidationError(SessionError):
    """不正なフラグメント（破棄され、状態は変化しない）"""


class SummaryError(SessionError):
    """要約コラボレータのエラー（セッション状態には影響しない）"""


class SummaryUnavailable(SummaryError):
    """要約コラボレータが設定されていない"""
