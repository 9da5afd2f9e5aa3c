#!/usr/bin/env python3
"""
Notelytix - Transcript Store
ドメイン層：セッションごとの文字起こし（追記専用・時系列順）
"""

import threading
from collections.abc import Callable

from .errors import FragmentValidationError, NotRecording, SessionError
from .models import TranscriptFragment, TranscriptLine


def validate_fragment(fragment: TranscriptFragment) -> None:
    """
    フラグメントを検証

    Raises:
        FragmentValidationError: 話者またはテキストが空の場合
    """
    if not fragment.text or not fragment.text.strip():
        raise FragmentValidationError("Fragment text is empty")
    if not fragment.speaker or not fragment.speaker.strip():
        raise FragmentValidationError("Fragment speaker is empty")


class TranscriptStore:
    """
    1セッション分の文字起こしを保持するストア

    責務:
    - 行の追記（RECORDING中のみ）
    - 行IDの採番（セッション内で一意）
    - タイムスタンプの単調非減少の保証
    - 停止後の凍結（読み取り専用化）
    - 一貫したスナップショットの提供
    """

    def __init__(self, is_recording: Callable[[], bool]) -> None:
        """
        Args:
            is_recording: 所有セッションがRECORDING状態かを返す関数
        """
        self._is_recording = is_recording
        self._lines: list[TranscriptLine] = []
        self._next_id = 1
        self._frozen = False
        self._lock = threading.Lock()

    def append(self, fragment: TranscriptFragment, elapsed: float) -> TranscriptLine:
        """
        フラグメントを検証して1行追記

        Args:
            fragment: 追記するフラグメント
            elapsed: セッション開始からの経過秒数

        Returns:
            TranscriptLine: 追記された行

        Raises:
            NotRecording: RECORDING以外、または凍結済みの場合
            FragmentValidationError: フラグメントが不正な場合
        """
        if self._frozen or not self._is_recording():
            raise NotRecording()
        validate_fragment(fragment)

        with self._lock:
            # 遅れて届いたフラグメントは直前行の時刻に揃える
            if self._lines:
                elapsed = max(elapsed, self._lines[-1].timestamp)
            line = TranscriptLine(
                id=self._next_id,
                speaker=fragment.speaker.strip(),
                text=fragment.text.strip(),
                timestamp=max(elapsed, 0.0),
            )
            self._lines.append(line)
            self._next_id += 1
        return line

    def reset(self) -> None:
        """全行をクリア（新規セッションの録音開始時のみ）"""
        if self._frozen:
            raise SessionError("Cannot reset a frozen transcript")
        with self._lock:
            self._lines.clear()
            self._next_id = 1

    def freeze(self) -> None:
        """以降の変更を禁止"""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def snapshot(self) -> tuple[TranscriptLine, ...]:
        """現時点の全行（不変のコピー）"""
        with self._lock:
            return tuple(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
