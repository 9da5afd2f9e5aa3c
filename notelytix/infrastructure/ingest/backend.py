#!/usr/bin/env python3
"""
Notelytix - Transcription Backend Module
文字起こしバックエンドの抽象化と模擬実装
"""

import random
import threading
from abc import ABC, abstractmethod
from typing import Protocol

from notelytix.domain import (
    AudioSettings,
    HandshakeOutcome,
    SimulatorSettings,
    TranscriptFragment,
    TranscriptLine,
)

from .simulator import LiveIngestSimulator
from .sources import FragmentSource


class BackendListener(Protocol):
    """
    バックエンドからの通知を受け取るインターフェース（SessionControllerが実装）
    """

    def handshake_succeeded(self) -> None: ...

    def handshake_failed(self, message: str) -> None: ...

    def backpressure(self) -> None: ...

    def drained(self) -> None: ...

    def transport_failed(self, message: str) -> None: ...

    def submit_fragment(self, fragment: TranscriptFragment) -> TranscriptLine | None: ...


class TranscriptionBackend(ABC):
    """
    文字起こしバックエンドの抽象基底クラス

    ハンドシェイク結果・送信詰まり・通信障害をリスナーへ通知し、
    RECORDING中に使うフラグメント供給源を生成する。
    """

    @abstractmethod
    def connect(self, audio: AudioSettings, listener: BackendListener) -> None:
        """
        ハンドシェイクを開始（ブロックしない）

        結果は listener.handshake_succeeded / handshake_failed で通知する。

        Args:
            audio: 開始時点の音声設定
            listener: 通知先
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """接続を閉じる（以降リスナーへ通知しない）"""
        pass

    @abstractmethod
    def create_source(self) -> FragmentSource:
        """RECORDING区間ごとのフラグメント供給源を生成"""
        pass

    @abstractmethod
    def get_backend_info(self) -> str:
        """バックエンド情報（表示用）"""
        pass


class SimulatedBackend(TranscriptionBackend):
    """
    模擬文字起こしバックエンド

    責務:
    - 遅延付きハンドシェイク（成功/失敗/無応答）
    - LiveIngestSimulator の生成
    - 送信詰まり・通信障害の手動注入（CLI・テスト用）
    """

    def __init__(self, settings: SimulatorSettings) -> None:
        self.settings = settings
        self.audio: AudioSettings | None = None
        self._listener: BackendListener | None = None
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        # 供給源をまたいで共有（再開ごとに同じ系列を繰り返さない）
        self._rng = random.Random(settings.seed)

    def connect(self, audio: AudioSettings, listener: BackendListener) -> None:
        with self._lock:
            self._cancel_timer()
            self.audio = audio
            self._listener = listener

            match self.settings.handshake_outcome:
                case HandshakeOutcome.SUCCESS:
                    callback = listener.handshake_succeeded
                case HandshakeOutcome.FAILURE:
                    def callback() -> None:
                        listener.handshake_failed("Transcription service refused the connection")
                case HandshakeOutcome.SILENT:
                    return

            self._timer = threading.Timer(self.settings.handshake_delay_sec, callback)
            self._timer.daemon = True
            self._timer.start()

    def disconnect(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._listener = None

    def create_source(self) -> FragmentSource:
        return LiveIngestSimulator(settings=self.settings, rng=self._rng)

    def get_backend_info(self) -> str:
        audio = self.audio
        if audio is None:
            return "Simulated backend"
        return f"Simulated backend ({audio.format}, {int(audio.sample_rate)} Hz)"

    @property
    def is_connected(self) -> bool:
        return self._listener is not None

    # ========== 障害注入 ==========

    def report_backpressure(self) -> None:
        """送信キューの飽和を通知"""
        if listener := self._listener:
            listener.backpressure()

    def report_drained(self) -> None:
        """送信キューの解消を通知"""
        if listener := self._listener:
            listener.drained()

    def report_transport_failure(self, message: str = "Connection lost") -> None:
        """通信障害を通知"""
        if listener := self._listener:
            listener.transport_failed(message)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
