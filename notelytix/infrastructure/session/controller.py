#!/usr/bin/env python3
"""
Notelytix - Session Controller Module
セッションのライフサイクル（状態遷移・タイムアウト・文字起こし取り込み）を管理するモジュール
"""

import dataclasses
import threading
import time
import uuid
from collections import deque
from datetime import datetime

from notelytix.domain import (
    TRANSIENT_STATES,
    AudioSettings,
    ErrorCode,
    ErrorInfo,
    FragmentValidationError,
    InvalidTransition,
    LineAppendedEvent,
    MessageLevel,
    NotRecording,
    SessionEvent,
    SessionSettings,
    SessionSnapshot,
    SessionState,
    StateChangedEvent,
    SummaryArtifact,
    TranscriptFragment,
    TranscriptLine,
    TranscriptStore,
    line_appended,
    post_message,
    state_changed,
    transition,
    validate_fragment,
)
from notelytix.infrastructure.ingest import (
    FragmentSource,
    TranscriptionBackend,
)


class _BackendBinding:
    """
    1回の接続に紐づくバックエンド通知の受け口

    接続ごとに発行され、別の接続（古いハンドシェイク等）からの通知は無視する。
    """

    def __init__(self, controller: "SessionController", connection_id: int) -> None:
        self._controller = controller
        self._connection_id = connection_id

    def handshake_succeeded(self) -> None:
        self._controller._on_backend_event(
            self._connection_id, SessionEvent.HANDSHAKE_SUCCEEDED
        )

    def handshake_failed(self, message: str) -> None:
        self._controller._on_backend_event(
            self._connection_id,
            SessionEvent.HANDSHAKE_FAILED,
            ErrorInfo(code=ErrorCode.HANDSHAKE_FAILURE, message=message),
        )

    def backpressure(self) -> None:
        self._controller._on_backend_event(self._connection_id, SessionEvent.BACKPRESSURE)

    def drained(self) -> None:
        self._controller._on_backend_event(self._connection_id, SessionEvent.DRAINED)

    def transport_failed(self, message: str) -> None:
        self._controller._on_backend_event(
            self._connection_id,
            SessionEvent.TRANSPORT_FAILED,
            ErrorInfo(code=ErrorCode.TRANSPORT_FAILURE, message=message),
        )

    def submit_fragment(self, fragment: TranscriptFragment) -> TranscriptLine | None:
        return self._controller._submit_for_connection(self._connection_id, fragment)


class SessionController:
    """
    セッション状態機械の単一の書き手

    責務:
    - 状態遷移の直列化（RLockで1コマンドずつ処理）
    - CONNECTING/BUFFERINGのタイムアウト監視
    - RECORDING中だけのフラグメント供給源の起動/キャンセル
    - BUFFERING中フラグメントの保持と復帰時の順序通りの反映
    - 状態変化の通知（確定順）

    Note:
    - 遷移の可否は domain.state_machine.transition() が決める
    - 通知はロック内で発行するため、購読側は常に確定済みの状態を観測する
    """

    def __init__(
        self,
        backend: TranscriptionBackend,
        settings: SessionSettings,
    ) -> None:
        """
        Args:
            backend: 文字起こしバックエンド
            settings: セッション設定（タイムアウト、既定タイトル）
        """
        self.backend = backend
        self.settings = settings
        self._lock = threading.RLock()

        # セッション状態
        self._state = SessionState.IDLE
        self._pending: SessionState | None = None
        self._session_id = uuid.uuid4().hex
        self._title = settings.default_title
        self._store = TranscriptStore(is_recording=self._is_recording)
        self._started_at: datetime | None = None
        self._started_mono: float | None = None
        self._last_error: ErrorInfo | None = None
        self._summary: SummaryArtifact | None = None

        # 取り込み制御
        self._source: FragmentSource | None = None
        self._last_source: FragmentSource | None = None
        self._backlog: deque[TranscriptFragment] = deque()
        self.dropped_fragments = 0

        # タイムアウト・接続の世代管理
        self._episode = 0
        self._connection_id = 0
        self._timer: threading.Timer | None = None

        # 停止済みセッションの履歴
        self._history: deque[SessionSnapshot] = deque(maxlen=settings.history_limit)

    # ========== 読み取り ==========

    @property
    def state(self) -> SessionState:
        """現在の状態（ロック不要の単一参照）"""
        return self._state

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def last_error(self) -> ErrorInfo | None:
        with self._lock:
            return self._last_error

    def transcript(self) -> tuple[TranscriptLine, ...]:
        """現在のセッションの文字起こし"""
        return self._store.snapshot()

    def snapshot(self) -> SessionSnapshot:
        """現在のセッションの整合したスナップショット"""
        with self._lock:
            return self._snapshot_locked()

    def history(self) -> tuple[SessionSnapshot, ...]:
        """過去セッション（古い順）"""
        with self._lock:
            return tuple(self._history)

    # ========== ユーザーコマンド ==========

    def start(self, audio: AudioSettings) -> None:
        """
        新しいセッションを開始（ハンドシェイク完了を待たない）

        Args:
            audio: 開始時点の音声設定

        Raises:
            InvalidTransition: IDLE/STOPPED/ERROR以外の場合
        """
        with self._lock:
            self._check(SessionEvent.START)
            self._begin_new_session()
            self._commit(SessionEvent.START)
            self._connection_id += 1
            self.backend.connect(audio, _BackendBinding(self, self._connection_id))

    def pause(self) -> None:
        """録音一時停止（この間のフラグメントは破棄される）"""
        with self._lock:
            self._commit(SessionEvent.PAUSE)

    def resume(self) -> None:
        """録音再開"""
        with self._lock:
            self._commit(SessionEvent.RESUME)

    def stop(self) -> bool:
        """
        録音停止（文字起こしを凍結）

        Returns:
            bool: 停止した場合True（すでにSTOPPEDなら何もせずFalse）
        """
        with self._lock:
            if self._state is SessionState.STOPPED:
                return False
            self._commit(SessionEvent.STOP)
            return True

    def retry(self) -> None:
        """ERRORからIDLEへ復帰"""
        with self._lock:
            self._commit(SessionEvent.RETRY)

    def set_title(self, title: str) -> str:
        """
        タイトルを変更（状態は変化しない）

        Returns:
            str: 設定されたタイトル（空なら既定タイトル）
        """
        with self._lock:
            self._title = title.strip() or self.settings.default_title
            return self._title

    def attach_summary(self, session_id: str, summary: SummaryArtifact) -> bool:
        """
        停止済みセッションに要約を記録

        Returns:
            bool: 記録できた場合True（別セッションに移っていればFalse）
        """
        with self._lock:
            if session_id != self._session_id or self._state is not SessionState.STOPPED:
                return False
            self._summary = summary
            return True

    # ========== バックエンド通知 ==========

    def handshake_succeeded(self) -> None:
        with self._lock:
            self._commit(SessionEvent.HANDSHAKE_SUCCEEDED)

    def handshake_failed(self, message: str) -> None:
        with self._lock:
            self._commit(
                SessionEvent.HANDSHAKE_FAILED,
                ErrorInfo(code=ErrorCode.HANDSHAKE_FAILURE, message=message),
            )

    def backpressure(self) -> None:
        with self._lock:
            self._commit(SessionEvent.BACKPRESSURE)

    def drained(self) -> None:
        with self._lock:
            self._commit(SessionEvent.DRAINED)

    def transport_failed(self, message: str) -> None:
        with self._lock:
            self._commit(
                SessionEvent.TRANSPORT_FAILED,
                ErrorInfo(code=ErrorCode.TRANSPORT_FAILURE, message=message),
            )

    def submit_fragment(self, fragment: TranscriptFragment) -> TranscriptLine | None:
        """
        文字起こしソースからのフラグメントを受け付ける

        - RECORDING: 追記して行を返す
        - PAUSED: 破棄（None）
        - BUFFERING: 保持し、RECORDING復帰時に順序通り追記（None）
        - 不正なフラグメント: 警告を出して破棄（None）

        Raises:
            NotRecording: 上記以外の状態の場合
        """
        with self._lock:
            state = self._state
            if state not in (
                SessionState.RECORDING,
                SessionState.PAUSED,
                SessionState.BUFFERING,
            ):
                raise NotRecording(state)

            try:
                validate_fragment(fragment)
            except FragmentValidationError as e:
                post_message(self, f"Dropped malformed fragment: {e}", MessageLevel.WARNING)
                return None

            if state is SessionState.PAUSED:
                self.dropped_fragments += 1
                return None

            if fragment.captured_at is None:
                fragment = dataclasses.replace(fragment, captured_at=time.monotonic())

            if state is SessionState.BUFFERING:
                self._backlog.append(fragment)
                return None

            return self._append_locked(fragment)

    # ========== 終了処理 ==========

    def shutdown(self) -> bool:
        """
        進行中のセッションを終了し、タイマー・接続・供給源を解放

        - RECORDING/PAUSED/BUFFERING: STOPPEDへ
        - CONNECTING: ハンドシェイクを打ち切りERRORへ（再度start()できる状態にする）

        Returns:
            bool: 録音中のセッションを停止した場合True
        """
        with self._lock:
            stopped = self._state in (
                SessionState.RECORDING,
                SessionState.PAUSED,
                SessionState.BUFFERING,
            )
            if stopped:
                self._commit(SessionEvent.STOP)
            elif self._state is SessionState.CONNECTING:
                self._commit(
                    SessionEvent.HANDSHAKE_FAILED,
                    ErrorInfo(
                        code=ErrorCode.HANDSHAKE_FAILURE,
                        message="Shut down before the transcription service answered",
                    ),
                )
            self._cancel_timer()
            self._cancel_source()
            self._connection_id += 1
            self.backend.disconnect()
            source, self._last_source = self._last_source, None

        # 供給スレッドはロックを待つことがあるため、解放後に終了を待つ
        if source is not None:
            source.join()
        return stopped

    # ========== 内部処理 ==========

    def _is_recording(self) -> bool:
        # 確定中の遷移先がRECORDINGなら保持分の反映を許可
        state = self._pending if self._pending is not None else self._state
        return state is SessionState.RECORDING

    def _submit_for_connection(
        self, connection_id: int, fragment: TranscriptFragment
    ) -> TranscriptLine | None:
        """現在の接続からのフラグメントのみ受け付ける"""
        with self._lock:
            if connection_id != self._connection_id:
                raise NotRecording(self._state)
            return self.submit_fragment(fragment)

    def _submit_for_episode(
        self, episode: int, fragment: TranscriptFragment
    ) -> TranscriptLine | None:
        """起動した時点のRECORDING区間が続いている間だけ受け付ける"""
        with self._lock:
            if episode != self._episode:
                raise NotRecording(self._state)
            return self.submit_fragment(fragment)

    def _on_backend_event(
        self, connection_id: int, event: SessionEvent, error: ErrorInfo | None = None
    ) -> None:
        """バックエンドスレッドからの通知（不正な遅延通知は警告のみ）"""
        with self._lock:
            if connection_id != self._connection_id:
                return
            try:
                self._commit(event, error)
            except InvalidTransition as e:
                post_message(self, f"Ignored backend signal: {e}", MessageLevel.WARNING)

    def _on_timeout(self, episode: int, timeout_sec: float) -> None:
        """タイマースレッドからのタイムアウト通知"""
        with self._lock:
            if episode != self._episode or self._state not in TRANSIENT_STATES:
                return
            state = self._state
            self._commit(
                SessionEvent.TIMED_OUT,
                ErrorInfo(
                    code=ErrorCode.TIMEOUT,
                    message=f"No response from transcription service within {timeout_sec:g}s ({state})",
                ),
            )

    def _check(self, event: SessionEvent) -> SessionState:
        """遷移可否を判定（不可なら状態を変えずに例外）"""
        result = transition(self._state, event)
        if result.target is None:
            raise InvalidTransition(self._state, event.command)
        return result.target

    def _commit(self, event: SessionEvent, error: ErrorInfo | None = None) -> None:
        """
        遷移を確定（ロック保持中に呼ぶ）

        1. 遷移判定
        2. 旧状態の後始末（供給源・タイマー）
        3. 文字起こしの準備（リセット・保持分の反映・凍結）
        4. 状態の確定と新状態の起動（供給源・タイマー・切断）
        5. 通知

        状態が公開される時点で文字起こしは新状態に整合している。
        通知は全ての副作用の後に行う（購読側の例外は呼び出し元へ伝播する）。
        """
        target = self._check(event)
        previous = self._state

        if previous is SessionState.RECORDING:
            self._cancel_source()
        self._cancel_timer()

        self._pending = target
        try:
            flushed, discarded = self._prepare(target, previous)
        finally:
            self._pending = None

        self._state = target
        self._last_error = error if target is SessionState.ERROR else None
        self._episode += 1
        # ERROR状態は必ずエラー情報を持つ
        assert (target is SessionState.ERROR) == (self._last_error is not None)

        self._activate(target)

        for line in flushed:
            line_appended.send(
                self, event=LineAppendedEvent(session_id=self._session_id, line=line)
            )
        if discarded:
            post_message(
                self, f"Discarded {discarded} buffered fragment(s)", MessageLevel.WARNING
            )
        state_changed.send(
            self,
            event=StateChangedEvent(
                session_id=self._session_id,
                previous=previous,
                state=target,
                error=self._last_error,
            ),
        )
        if self._last_error is not None:
            post_message(self, f"Session error: {self._last_error.message}", MessageLevel.ERROR)

    def _prepare(
        self, target: SessionState, previous: SessionState
    ) -> tuple[list[TranscriptLine], int]:
        """
        状態確定前の文字起こし操作

        Returns:
            tuple[list[TranscriptLine], int]: (反映した保持分の行, 破棄した保持分の件数)
        """
        match target:
            case SessionState.RECORDING if previous is SessionState.CONNECTING:
                self._store.reset()
                self._started_at = datetime.now()
                self._started_mono = time.monotonic()
            case SessionState.RECORDING if previous is SessionState.BUFFERING:
                return self._flush_backlog(), 0
            case SessionState.STOPPED:
                discarded = self._discard_backlog()
                self._store.freeze()
                return [], discarded
            case SessionState.ERROR:
                return [], self._discard_backlog()
        return [], 0

    def _activate(self, target: SessionState) -> None:
        """状態確定後の副作用（新しい区間の番号で起動する）"""
        match target:
            case SessionState.CONNECTING:
                self._arm_timeout(self.settings.connect_timeout_sec)
            case SessionState.BUFFERING:
                self._arm_timeout(self.settings.buffering_timeout_sec)
            case SessionState.RECORDING:
                self._start_source()
            case SessionState.STOPPED | SessionState.ERROR:
                self.backend.disconnect()
            case SessionState.IDLE | SessionState.PAUSED:
                pass

    def _begin_new_session(self) -> None:
        """前回のセッションを履歴へ移し、新しいセッションを用意"""
        if self._state is SessionState.STOPPED or len(self._store):
            self._store.freeze()
            self._history.append(self._snapshot_locked())
        self._session_id = uuid.uuid4().hex
        self._title = self.settings.default_title
        self._store = TranscriptStore(is_recording=self._is_recording)
        self._started_at = None
        self._started_mono = None
        self._summary = None
        self.dropped_fragments = 0

    def _append_locked(self, fragment: TranscriptFragment) -> TranscriptLine:
        line = self._store.append(fragment, self._elapsed(fragment))
        line_appended.send(self, event=LineAppendedEvent(session_id=self._session_id, line=line))
        return line

    def _elapsed(self, fragment: TranscriptFragment) -> float:
        if self._started_mono is None:
            return 0.0
        captured = fragment.captured_at if fragment.captured_at is not None else time.monotonic()
        return captured - self._started_mono

    def _flush_backlog(self) -> list[TranscriptLine]:
        """BUFFERING中に保持したフラグメントを受信順に反映（通知は呼び出し側）"""
        lines = []
        while self._backlog:
            fragment = self._backlog.popleft()
            lines.append(self._store.append(fragment, self._elapsed(fragment)))
        return lines

    def _discard_backlog(self) -> int:
        count = len(self._backlog)
        self._backlog.clear()
        return count

    def _start_source(self) -> None:
        self._cancel_source()
        self._source = self.backend.create_source()
        episode = self._episode
        self._source.start(lambda fragment: self._submit_for_episode(episode, fragment))

    def _cancel_source(self) -> None:
        if self._source is not None:
            self._source.cancel()
            self._last_source = self._source
            self._source = None

    def _arm_timeout(self, timeout_sec: float) -> None:
        timer = threading.Timer(timeout_sec, self._on_timeout, args=(self._episode, timeout_sec))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            id=self._session_id,
            title=self._title,
            state=self._state,
            transcript=self._store.snapshot(),
            started_at=self._started_at,
            last_error=self._last_error,
            summary=self._summary,
        )
