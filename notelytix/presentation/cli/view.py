#!/usr/bin/env python3
"""
Notelytix - CLI View
CLIのView層：Signal購読とコンソール表示の統合管理
"""

import re
import sys
import threading
from collections.abc import Sequence

import wcwidth  # type: ignore[import-untyped]
from colorama import Fore, Style  # type: ignore[import-untyped]

from notelytix import __version__
from notelytix.domain import (
    AudioSettings,
    LineAppendedEvent,
    MessageLevel,
    MessagePostedEvent,
    SessionSnapshot,
    SessionState,
    Settings,
    StateChangedEvent,
    SummaryArtifact,
    SummaryGeneratedEvent,
    TranscriptLine,
    format_elapsed,
    line_appended,
    message_posted,
    state_changed,
    summary_generated,
)
from notelytix.infrastructure.ai import LLMClient
from notelytix.infrastructure.ingest import TranscriptionBackend

_HELP_TEXT = """\
Commands:
  start | pause | resume | stop | retry
  title <text>      rename the current session (empty resets to default)
  summary           summarize the stopped session
  status | history  show the current / past sessions
  backpressure | drained | fail [message]   simulate transport conditions
  quit              stop recording and exit
"""


class CLIView:
    """
    CLI View層

    責務:
    - Signalサブスクリプションとイベント駆動表示
    - コンソール表示のフォーマッティング（話者列の表示幅揃え）
    - スレッドセーフな表示管理
    """

    # ANSIエスケープコード削除用パターン（コンパイル済み）
    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    # 状態ごとの表示色
    _STATE_COLORS = {
        SessionState.IDLE: Fore.WHITE,
        SessionState.CONNECTING: Fore.YELLOW,
        SessionState.RECORDING: Fore.RED,
        SessionState.PAUSED: Fore.CYAN,
        SessionState.BUFFERING: Fore.MAGENTA,
        SessionState.ERROR: Fore.RED,
        SessionState.STOPPED: Fore.GREEN,
    }

    def __init__(self, settings: Settings) -> None:
        """
        CLIViewの初期化とSignalサブスクリプション設定

        Args:
            settings: アプリケーション設定
        """
        self.settings = settings
        self.lock = threading.Lock()  # スレッド間の同期用ロック

        # Signalサブスクリプション設定
        state_changed.connect(self._on_state_changed)
        line_appended.connect(self._on_line_appended)
        summary_generated.connect(self._on_summary_generated)
        message_posted.connect(self._on_message_posted)

    # ========== Signalハンドラ ==========

    def _on_state_changed(self, _sender: object, event: StateChangedEvent) -> None:
        """状態表示ハンドラ"""
        self._show_state(event)

    def _on_line_appended(self, _sender: object, event: LineAppendedEvent) -> None:
        """文字起こし行表示ハンドラ"""
        self._show_line(event.line)

    def _on_summary_generated(
        self, _sender: object, event: SummaryGeneratedEvent
    ) -> None:
        """要約表示ハンドラ"""
        self._show_summary(event.summary)

    def _on_message_posted(self, _sender: object, event: MessagePostedEvent) -> None:
        """ステータスメッセージ表示ハンドラ"""
        self._show_message(event)

    # ========== ライフサイクル制御 ==========

    def stop(self) -> None:
        """Signal購読を解除"""
        state_changed.disconnect(self._on_state_changed)
        line_appended.disconnect(self._on_line_appended)
        summary_generated.disconnect(self._on_summary_generated)
        message_posted.disconnect(self._on_message_posted)

    # ========== 表示メソッド ==========

    def _write(self, text: str) -> None:
        with self.lock:
            sys.stdout.write(text)
            sys.stdout.flush()

    def _show_state(self, event: StateChangedEvent) -> None:
        """状態遷移を表示"""
        color = self._STATE_COLORS.get(event.state, Fore.WHITE)
        self._write(
            f"{Style.DIM}{event.previous} -> {Style.RESET_ALL}"
            f"{color}● {event.state}{Style.RESET_ALL}\n"
        )

    def _show_line(self, line: TranscriptLine) -> None:
        """文字起こし行を表示"""
        speaker_color = Fore.GREEN if line.speaker == "Me" else Fore.BLUE
        speaker = self._pad(line.speaker, self.settings.app.speaker_column_width)
        self._write(
            f"{Fore.MAGENTA}[{line.display_time}]{Style.RESET_ALL} "
            f"{speaker_color}{speaker}{Style.RESET_ALL} {line.text}\n"
        )

    def _show_message(self, event: MessagePostedEvent) -> None:
        """メッセージを表示"""
        # メッセージレベルに応じた色を選択
        color_map = {
            MessageLevel.INFO: Fore.CYAN,
            MessageLevel.SUCCESS: Fore.GREEN,
            MessageLevel.WARNING: Fore.YELLOW,
            MessageLevel.ERROR: Fore.RED,
        }
        color = color_map.get(event.level, Fore.WHITE)
        self._write(f"{color}{event.message}{Style.RESET_ALL}\n")

    def _show_summary(self, summary: SummaryArtifact) -> None:
        """会議要約を表示"""
        self._write(
            f"\n{Fore.CYAN}{'─' * 50}{Style.RESET_ALL}\n"
            f"{summary.content}\n"
            f"{Style.DIM}({summary.model}){Style.RESET_ALL}\n"
            f"{Fore.CYAN}{'─' * 50}{Style.RESET_ALL}\n\n"
        )

    def show_status(self, session: SessionSnapshot, audio: AudioSettings) -> None:
        """現在のセッション情報を表示"""
        color = self._STATE_COLORS.get(session.state, Fore.WHITE)
        lines = [
            f"{Fore.YELLOW}Session:{Style.RESET_ALL} {session.title}",
            f"  - State: {color}{session.state}{Style.RESET_ALL}",
            f"  - Elapsed: {format_elapsed(session.duration_seconds)}",
            f"  - Lines: {len(session.transcript)}",
            f"  - Audio: {audio.format} / {int(audio.sample_rate)} Hz",
        ]
        if session.last_error:
            lines.append(
                f"  - Error: {Fore.RED}[{session.last_error.code}] "
                f"{session.last_error.message}{Style.RESET_ALL}"
            )
        if session.summary:
            lines.append("  - Summary: available")
        self._write("\n".join(lines) + "\n")

    def show_history(self, sessions: Sequence[SessionSnapshot]) -> None:
        """過去セッション一覧を表示"""
        if not sessions:
            self._write("No past sessions.\n")
            return
        rows = [f"{Fore.YELLOW}History:{Style.RESET_ALL}"]
        for session in sessions:
            started = session.started_at.strftime("%Y-%m-%d %H:%M") if session.started_at else "--"
            rows.append(
                f"  {started}  {session.title} "
                f"({len(session.transcript)} lines, {format_elapsed(session.duration_seconds)})"
            )
        self._write("\n".join(rows) + "\n")

    def show_help(self) -> None:
        self._write(f"{Style.DIM}{_HELP_TEXT}{Style.RESET_ALL}\n")

    def show_banner(
        self, backend: TranscriptionBackend, llm_client: LLMClient | None
    ) -> None:
        """
        起動バナーを表示

        Args:
            backend: 文字起こしバックエンド
            llm_client: LLMクライアント（Noneの場合は要約無効として表示）
        """
        # バージョン文字列の表示：.dev以降をカット
        version_display = (
            __version__.split(".dev")[0] if ".dev" in __version__ else __version__
        )

        # LLMバックエンド情報を取得
        llm_info = llm_client.get_backend_info() if llm_client else "Disabled"

        audio = self.settings.audio
        session = self.settings.session

        banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════╗
║       Notelytix v{version_display:<22}  ║
║  Meeting Recorder Session Console        ║
╚══════════════════════════════════════════╝{Style.RESET_ALL}

{Fore.YELLOW}Config:{Style.RESET_ALL}
  - Backend: {backend.get_backend_info()}
  - Audio: {audio.format} / {int(audio.sample_rate)} Hz
  - Timeouts: connect {session.connect_timeout_sec:g}s, buffering {session.buffering_timeout_sec:g}s
  - Summary: {llm_info}

"""
        self._write(banner)

    # ========== フォーマッティングメソッド ==========

    def _get_display_width(self, text: str) -> int:
        """ANSIエスケープコードを除いた実際の表示幅を取得"""
        plain_text = self._ANSI_ESCAPE_PATTERN.sub("", text)
        return max(0, int(wcwidth.wcswidth(plain_text)))

    def _pad(self, text: str, width: int) -> str:
        """表示幅がwidthになるよう右側を空白で埋める（全角文字を考慮）"""
        return text + " " * max(0, width - self._get_display_width(text))
