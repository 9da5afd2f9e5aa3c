#!/usr/bin/env python3
"""
Notelytix - CLI Controller
CLIアプリケーションのコントローラー層：アプリケーションのライフサイクル管理とコマンド入力
"""

import select
import sys
import traceback
from collections.abc import Callable
from pathlib import Path

from notelytix.domain import (
    HandshakeOutcome,
    MessageLevel,
    SessionError,
    post_message,
)
from notelytix.infrastructure.ai import LLMClient, MeetingSummarizer, create_llm_client
from notelytix.infrastructure.config import load_settings
from notelytix.infrastructure.ingest import SimulatedBackend
from notelytix.presentation.app import SessionFacade

from .view import CLIView


class CLIController:
    """
    CLIコントローラー

    責務:
    - 設定読み込みとCLI引数による上書き
    - Facade/View初期化と配線
    - コマンド入力の解釈と実行
    - アプリケーションのライフサイクル管理（起動/終了）
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        handshake: HandshakeOutcome | None = None,
        seed: int | None = None,
        save_json: bool = True,
    ):
        """
        CLIControllerの初期化

        Args:
            config_dir: 設定ファイルのディレクトリ（Noneの場合はプロジェクトルート）
            handshake: 模擬ハンドシェイク結果の上書き
            seed: 模擬文字起こしの乱数シード
            save_json: 停止時にJSON保存するかどうか
        """
        self.settings = load_settings(config_dir)
        if handshake is not None:
            self.settings.simulator.handshake_outcome = handshake
        if seed is not None:
            self.settings.simulator.seed = seed
        if not save_json:
            self.settings.app.save_json = False

        self.backend: SimulatedBackend | None = None
        self.facade: SessionFacade | None = None
        self.view: CLIView | None = None

        # コマンド名 → 処理
        self._commands: dict[str, Callable[[str], None]] = {
            "start": lambda _: self._require_facade().start(),
            "pause": lambda _: self._require_facade().pause(),
            "resume": lambda _: self._require_facade().resume(),
            "stop": lambda _: self._require_facade().stop(),
            "retry": lambda _: self._require_facade().retry(),
            "title": self._edit_title,
            "summary": lambda _: self._require_facade().generate_summary(),
            "status": self._show_status,
            "history": self._show_history,
            "backpressure": lambda _: self._require_backend().report_backpressure(),
            "drained": lambda _: self._require_backend().report_drained(),
            "fail": self._inject_failure,
            "help": lambda _: self._require_view().show_help(),
        }

    def run(self) -> None:
        """
        アプリケーションを実行

        Raises:
            SystemExit: エラー発生時
        """
        llm_client = self.setup()
        view = self._require_view()

        # バナー表示
        view.show_banner(self._require_backend(), llm_client)
        view.show_help()

        try:
            self._command_loop()

        except KeyboardInterrupt:
            # Ctrl-C: 正常終了
            post_message(None, "\nGoodbye!", MessageLevel.SUCCESS)
            self.shutdown()

        except EOFError:
            # Ctrl-D: 入力終了
            post_message(None, "\nInput closed (Ctrl-D)", MessageLevel.WARNING)
            self.shutdown()

        except Exception as e:
            # エラー時は即座に終了
            post_message(None, f"\nError: {e}", MessageLevel.ERROR)
            traceback.print_exc()
            sys.exit(1)

    def setup(self) -> LLMClient | None:
        """
        View・LLMクライアント・バックエンド・Facadeを生成して配線

        Returns:
            LLMClient | None: 要約用LLMクライアント（要約無効ならNone）
        """
        # 1. CLIView作成（Signal受信準備）
        self.view = CLIView(settings=self.settings)

        # 2. LLMクライアント初期化（設定検証済み）
        llm_client = (
            create_llm_client(settings=self.settings.summary)
            if self.settings.summary.enabled
            else None
        )
        summarizer = (
            MeetingSummarizer(llm_client=llm_client, settings=self.settings.summary)
            if llm_client
            else None
        )

        # 3. バックエンドとFacade作成
        self.backend = SimulatedBackend(settings=self.settings.simulator)
        self.facade = SessionFacade(
            backend=self.backend, settings=self.settings, summarizer=summarizer
        )
        return llm_client

    # ========== コマンド処理 ==========

    def _command_loop(self) -> None:
        """
        quitが入力されるまでコマンドを処理

        Raises:
            KeyboardInterrupt: Ctrl-C が押された場合
            EOFError: Ctrl-D が押された場合
        """
        while True:
            line = self._read_line()
            if line is None:
                continue
            name, _, argument = line.strip().partition(" ")
            if not name:
                continue
            if name in ("quit", "exit"):
                post_message(None, "Goodbye!", MessageLevel.SUCCESS)
                self.shutdown()
                return
            self.execute(name.lower(), argument.strip())

    def execute(self, name: str, argument: str = "") -> None:
        """
        1つのコマンドを実行（セッションエラーはメッセージとして表示）

        Args:
            name: コマンド名
            argument: コマンド引数
        """
        handler = self._commands.get(name)
        if handler is None:
            post_message(
                None, f"Unknown command: {name} (type 'help')", MessageLevel.WARNING
            )
            return
        try:
            handler(argument)
        except SessionError as e:
            post_message(None, str(e), MessageLevel.ERROR)

    def _read_line(self) -> str | None:
        """
        標準入力から1行読み取る

        Returns:
            str | None: 入力行（ポーリング時間内に入力がなければNone）

        Raises:
            EOFError: 入力が閉じられた場合
        """
        if sys.stdin.isatty():
            ready, _, _ = select.select(
                [sys.stdin], [], [], self.settings.app.input_poll_interval_sec
            )
            if not ready:
                return None
        line = sys.stdin.readline()
        if not line:
            raise EOFError
        return line

    def _edit_title(self, argument: str) -> None:
        title = self._require_facade().edit_title(argument)
        post_message(None, f"Title: {title}", MessageLevel.INFO)

    def _show_status(self, _argument: str) -> None:
        facade = self._require_facade()
        self._require_view().show_status(facade.snapshot(), facade.audio_settings)

    def _show_history(self, _argument: str) -> None:
        self._require_view().show_history(self._require_facade().history())

    def _inject_failure(self, argument: str) -> None:
        self._require_backend().report_transport_failure(argument or "Connection lost")

    # ========== 終了処理 ==========

    def shutdown(self) -> None:
        """アプリケーションの終了処理"""
        if self.facade:
            self.facade.shutdown()

        if self.view:
            self.view.stop()

    def _require_facade(self) -> SessionFacade:
        assert self.facade is not None
        return self.facade

    def _require_backend(self) -> SimulatedBackend:
        assert self.backend is not None
        return self.backend

    def _require_view(self) -> CLIView:
        assert self.view is not None
        return self.view
