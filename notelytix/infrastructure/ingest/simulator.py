#!/usr/bin/env python3
"""
Notelytix - Live Ingest Simulator
実際のストリーミング文字起こしの代わりに、ランダムなフラグメントを定期生成する
"""

import random
import threading
import time

from notelytix.domain import NotRecording, SimulatorSettings, TranscriptFragment

from .sources import FragmentSink, FragmentSource


class LiveIngestSimulator(FragmentSource):
    """
    模擬フラグメント生成器

    機能:
    - 一定間隔（tick）ごとに確率的に1件生成（1tickあたり最大1件）
    - cancel() で次のtickを待たずに停止
    - シード指定で再現可能

    責務:
    - 話者・テキストの合成
    - 生成スレッドのライフサイクル管理
    """

    def __init__(self, settings: SimulatorSettings, rng: random.Random | None = None):
        self.settings = settings
        self._rng = rng or random.Random(settings.seed)

        # スレッド制御
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.emitted = 0

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self, sink: FragmentSink) -> None:
        """生成スレッドを開始"""
        if self.is_running:
            return  # すでに起動済み

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._ingest_loop,
            args=(sink, self._stop_event),
            daemon=True,
            name="LiveIngestThread",
        )
        self._thread.start()

    def cancel(self) -> None:
        """生成スレッドに停止を指示（待機しない）"""
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        """生成スレッドの終了を待つ"""
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self.settings.shutdown_timeout_sec if timeout is None else timeout)

    def next_fragment(self) -> TranscriptFragment | None:
        """
        1tick分の判定を行い、生成する場合はフラグメントを返す

        Returns:
            TranscriptFragment | None: 今回のtickで生成しない場合はNone
        """
        if self._rng.random() >= self.settings.emission_probability:
            return None
        return TranscriptFragment(
            speaker=self._rng.choice(self.settings.speakers),
            text=self._rng.choice(self.settings.phrases),
            captured_at=time.monotonic(),
        )

    def _ingest_loop(self, sink: FragmentSink, stop_event: threading.Event) -> None:
        """生成ループ（別スレッドで実行）"""
        while not stop_event.wait(self.settings.tick_interval_sec):
            fragment = self.next_fragment()
            if fragment is None:
                continue
            if stop_event.is_set():
                break
            try:
                sink(fragment)
            except NotRecording:
                # RECORDINGを抜けた後に届いた分は破棄して終了
                break
            self.emitted += 1
