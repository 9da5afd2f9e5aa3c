"""セッション状態遷移表のテスト"""

import random

import pytest

from notelytix.domain import (
    TRANSIENT_STATES,
    TRANSITIONS,
    SessionEvent,
    SessionState,
    allowed_events,
    transition,
)

S = SessionState
E = SessionEvent


class TestTransitionTable:
    """遷移表の各行のテスト"""

    @pytest.mark.parametrize(
        ("state", "event", "expected"),
        [
            (S.IDLE, E.START, S.CONNECTING),
            (S.STOPPED, E.START, S.CONNECTING),
            (S.ERROR, E.START, S.CONNECTING),
            (S.CONNECTING, E.HANDSHAKE_SUCCEEDED, S.RECORDING),
            (S.CONNECTING, E.HANDSHAKE_FAILED, S.ERROR),
            (S.CONNECTING, E.TIMED_OUT, S.ERROR),
            (S.RECORDING, E.PAUSE, S.PAUSED),
            (S.RECORDING, E.STOP, S.STOPPED),
            (S.RECORDING, E.BACKPRESSURE, S.BUFFERING),
            (S.RECORDING, E.TRANSPORT_FAILED, S.ERROR),
            (S.PAUSED, E.RESUME, S.RECORDING),
            (S.PAUSED, E.STOP, S.STOPPED),
            (S.BUFFERING, E.DRAINED, S.RECORDING),
            (S.BUFFERING, E.STOP, S.STOPPED),
            (S.BUFFERING, E.TRANSPORT_FAILED, S.ERROR),
            (S.BUFFERING, E.TIMED_OUT, S.ERROR),
            (S.ERROR, E.RETRY, S.IDLE),
        ],
    )
    def test_accepted_transitions(
        self, state: SessionState, event: SessionEvent, expected: SessionState
    ) -> None:
        """許可された遷移は表どおりの遷移先になる"""
        result = transition(state, event)
        assert result.accepted is True
        assert result.target is expected
        assert result.source is state
        assert result.event is event

    @pytest.mark.parametrize(
        ("state", "event"),
        [
            (S.IDLE, E.STOP),
            (S.IDLE, E.PAUSE),
            (S.IDLE, E.RESUME),
            (S.IDLE, E.RETRY),
            (S.CONNECTING, E.START),
            (S.CONNECTING, E.STOP),
            (S.CONNECTING, E.PAUSE),
            (S.RECORDING, E.START),
            (S.RECORDING, E.RESUME),
            (S.RECORDING, E.DRAINED),
            (S.PAUSED, E.PAUSE),
            (S.PAUSED, E.BACKPRESSURE),
            (S.BUFFERING, E.PAUSE),
            (S.BUFFERING, E.RESUME),
            (S.ERROR, E.STOP),
            (S.STOPPED, E.STOP),
            (S.STOPPED, E.RESUME),
        ],
    )
    def test_rejected_transitions(self, state: SessionState, event: SessionEvent) -> None:
        """許可されていない遷移は遷移先なし"""
        result = transition(state, event)
        assert result.accepted is False
        assert result.target is None

    def test_table_is_read_only(self) -> None:
        """遷移表は実行時に書き換えられない"""
        with pytest.raises(TypeError):
            TRANSITIONS[(S.IDLE, E.STOP)] = S.STOPPED  # type: ignore[index]


class TestAllowedEvents:
    """状態ごとの受付可能イベントのテスト"""

    def test_idle_only_accepts_start(self) -> None:
        assert allowed_events(S.IDLE) == frozenset({E.START})

    def test_error_accepts_retry_and_start(self) -> None:
        assert allowed_events(S.ERROR) == frozenset({E.RETRY, E.START})

    def test_every_state_has_an_exit(self) -> None:
        """どの状態も少なくとも1つの遷移を持つ（行き止まりなし）"""
        for state in SessionState:
            assert allowed_events(state), state


class TestTransientStates:
    """一時的な状態のテスト"""

    def test_transient_states(self) -> None:
        assert TRANSIENT_STATES == frozenset({S.CONNECTING, S.BUFFERING})

    def test_transient_states_can_time_out(self) -> None:
        """一時的な状態だけがタイムアウトでERRORになる"""
        for state in SessionState:
            result = transition(state, E.TIMED_OUT)
            if state in TRANSIENT_STATES:
                assert result.target is S.ERROR
            else:
                assert result.accepted is False


class TestRandomWalk:
    """ランダムなイベント列に対する性質のテスト"""

    @pytest.mark.parametrize("seed", range(20))
    def test_random_event_sequences_stay_within_table(self, seed: int) -> None:
        """任意のイベント列で、拒否は状態を変えず、受理は表の遷移先に移る"""
        rng = random.Random(seed)
        events = list(SessionEvent)
        state = S.IDLE

        for _ in range(200):
            event = rng.choice(events)
            result = transition(state, event)
            if result.accepted:
                assert TRANSITIONS[(state, event)] is result.target
                assert result.target is not None
                state = result.target
            else:
                assert (state, event) not in TRANSITIONS

            # RECORDINGに入れるのはCONNECTING/PAUSED/BUFFERINGからのみ
            if result.target is S.RECORDING:
                assert result.source in (S.CONNECTING, S.PAUSED, S.BUFFERING)
