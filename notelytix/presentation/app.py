#!/usr/bin/env python3
"""
Notelytix - Session Facade
プレゼンテーション層：セッション操作の公開インターフェース（CLI/GUI共通）
"""

from collections.abc import Callable
from pathlib import Path

from notelytix.domain import (
    AlreadyActive,
    AudioSettings,
    InvalidTransition,
    MessageLevel,
    SessionSnapshot,
    SessionState,
    Settings,
    StateChangedEvent,
    SummaryArtifact,
    SummaryGeneratedEvent,
    SummaryUnavailable,
    TranscriptLine,
    post_message,
    state_changed,
    summary_generated,
)
from notelytix.infrastructure.ai import MeetingSummarizer
from notelytix.infrastructure.ingest import TranscriptionBackend
from notelytix.infrastructure.persistence import SessionJsonExporter
from notelytix.infrastructure.session import SessionController


class SessionFacade:
    """
    Notelytix共通コアアプリケーション（プレゼンテーション層向けの窓口）

    責務:
    - コマンド（start/pause/resume/stop/retry/edit_title/generate_summary）の受付
    - 読み取り専用のスナップショット提供
    - 設定コラボレータからの音声設定の取得
    - 停止時のセッション保存

    Note:
    - セッションの変更は必ず SessionController を経由する
    - UI層は domain.events の各Signalを購読して表示を行う
    """

    def __init__(
        self,
        backend: TranscriptionBackend,
        settings: Settings,
        summarizer: MeetingSummarizer | None = None,
        audio_settings_provider: Callable[[], AudioSettings] | None = None,
    ):
        """
        SessionFacadeの初期化

        Args:
            backend: 文字起こしバックエンド
            settings: アプリケーション設定
            summarizer: 要約コラボレータ（Noneの場合は要約機能無効）
            audio_settings_provider: start()時に音声設定を返す関数（Noneなら settings.audio）
        """
        self.settings = settings
        self.summarizer = summarizer
        self._audio_settings = settings.audio
        self._audio_settings_provider = audio_settings_provider or (lambda: self._audio_settings)
        self.controller = SessionController(backend=backend, settings=settings.session)
        self.last_saved_path: Path | None = None

        # 自分のコントローラからのイベントのみ購読
        state_changed.connect(self._on_state_changed, sender=self.controller)

    # ========== イベントハンドラ ==========

    def _on_state_changed(self, _sender: object, event: StateChangedEvent) -> None:
        """通知コラボレータ向けのメッセージを発行"""
        if event.previous is SessionState.CONNECTING and event.state is SessionState.RECORDING:
            post_message(self, "Recording started", MessageLevel.SUCCESS)
        elif event.state is SessionState.STOPPED:
            post_message(self, "Recording stopped", MessageLevel.SUCCESS)

    # ========== コマンド ==========

    def start(self) -> None:
        """
        録音開始（ハンドシェイク完了はstate_changedで通知される）

        Raises:
            AlreadyActive: IDLE/STOPPED/ERROR以外の場合
        """
        try:
            self.controller.start(self._audio_settings_provider())
        except InvalidTransition as e:
            raise AlreadyActive(e.state) from e
        self.last_saved_path = None

    def pause(self) -> None:
        """録音一時停止"""
        self.controller.pause()

    def resume(self) -> None:
        """録音再開"""
        self.controller.resume()

    def stop(self) -> None:
        """
        録音停止（STOPPED中は何もしない）

        Raises:
            InvalidTransition: IDLE/CONNECTING/ERRORの場合
        """
        if self.controller.stop():
            self._save_session()

    def retry(self) -> None:
        """ERRORからIDLEへ復帰"""
        self.controller.retry()

    def edit_title(self, text: str) -> str:
        """
        タイトルを変更

        Returns:
            str: 設定後のタイトル
        """
        return self.controller.set_title(text)

    def update_audio_settings(self, audio: AudioSettings) -> None:
        """音声設定を更新（次回のstart()から有効）"""
        self._audio_settings = audio

    def generate_summary(self) -> SummaryArtifact:
        """
        停止済みセッションの要約を生成（セッション状態は変化しない）

        Returns:
            SummaryArtifact: 生成された要約

        Raises:
            InvalidTransition: STOPPED以外の場合
            SummaryUnavailable: 要約機能が無効の場合
            SummaryError: 要約生成に失敗した場合
        """
        session = self.controller.snapshot()
        if session.state is not SessionState.STOPPED:
            raise InvalidTransition(session.state, "generate_summary")
        if self.summarizer is None:
            raise SummaryUnavailable("Summary generation is disabled")

        summary = self.summarizer.summarize(title=session.title, lines=session.transcript)

        if self.controller.attach_summary(session.id, summary):
            summary_generated.send(
                self, event=SummaryGeneratedEvent(session_id=session.id, summary=summary)
            )
            if self.last_saved_path is not None:
                self._save_session(self.last_saved_path)
        return summary

    # ========== 読み取り ==========

    def current_state(self) -> SessionState:
        return self.controller.state

    def current_transcript(self) -> tuple[TranscriptLine, ...]:
        return self.controller.transcript()

    def snapshot(self) -> SessionSnapshot:
        return self.controller.snapshot()

    def history(self) -> tuple[SessionSnapshot, ...]:
        return self.controller.history()

    @property
    def audio_settings(self) -> AudioSettings:
        return self._audio_settings

    # ========== 終了処理 ==========

    def shutdown(self) -> None:
        """進行中のセッションを停止して保存し、接続を解放"""
        if self.controller.shutdown():
            self._save_session()
        state_changed.disconnect(self._on_state_changed, sender=self.controller)

    def _save_session(self, output_path: Path | None = None) -> None:
        """セッションの保存（JSON出力）"""
        session = self.controller.snapshot()
        if not self.settings.app.save_json or not session.transcript:
            return

        self.last_saved_path = SessionJsonExporter.save_to_file(
            session,
            output_path=output_path,
            output_dir=Path(self.settings.app.output_dir),
        )
        post_message(
            self,
            f"Meeting saved to: {self.last_saved_path}",
            MessageLevel.SUCCESS,
        )
