"""TranscriptStoreのテスト"""

import threading

import pytest

from notelytix.domain import (
    FragmentValidationError,
    NotRecording,
    SessionError,
    TranscriptFragment,
    TranscriptStore,
    format_elapsed,
    validate_fragment,
)


class _RecordingFlag:
    """is_recording コールバックの切り替え用"""

    def __init__(self, value: bool = True) -> None:
        self.value = value

    def __call__(self) -> bool:
        return self.value


@pytest.fixture
def flag() -> _RecordingFlag:
    return _RecordingFlag()


@pytest.fixture
def store(flag: _RecordingFlag) -> TranscriptStore:
    return TranscriptStore(is_recording=flag)


def _fragment(text: str = "hello", speaker: str = "Me") -> TranscriptFragment:
    return TranscriptFragment(speaker=speaker, text=text)


class TestAppend:
    """追記のテスト"""

    def test_ids_are_sequential_from_one(self, store: TranscriptStore) -> None:
        """行IDは1から連番"""
        lines = [store.append(_fragment(f"line {i}"), float(i)) for i in range(3)]
        assert [line.id for line in lines] == [1, 2, 3]

    def test_text_and_speaker_are_stripped(self, store: TranscriptStore) -> None:
        line = store.append(_fragment("  hi there \n", " Client "), 1.0)
        assert line.text == "hi there"
        assert line.speaker == "Client"

    def test_late_fragment_is_clamped_to_previous_timestamp(
        self, store: TranscriptStore
    ) -> None:
        """遅れて届いた行のタイムスタンプは直前行に揃う（単調非減少）"""
        store.append(_fragment("first"), 5.0)
        late = store.append(_fragment("late"), 3.0)
        assert late.timestamp == 5.0

    def test_negative_elapsed_is_clamped_to_zero(self, store: TranscriptStore) -> None:
        line = store.append(_fragment(), -2.0)
        assert line.timestamp == 0.0

    def test_rejected_when_not_recording(
        self, store: TranscriptStore, flag: _RecordingFlag
    ) -> None:
        """RECORDING以外では追記できず、行は増えない"""
        flag.value = False
        with pytest.raises(NotRecording):
            store.append(_fragment(), 0.0)
        assert len(store) == 0

    @pytest.mark.parametrize(
        ("speaker", "text"),
        [("Me", ""), ("Me", "   "), ("", "hello"), (" \t", "hello")],
    )
    def test_rejects_malformed_fragment(
        self, store: TranscriptStore, speaker: str, text: str
    ) -> None:
        """空のテキスト・話者は検証エラーで破棄"""
        with pytest.raises(FragmentValidationError):
            store.append(TranscriptFragment(speaker=speaker, text=text), 0.0)
        assert len(store) == 0

    def test_validation_error_is_a_session_error(self) -> None:
        with pytest.raises(SessionError):
            validate_fragment(_fragment(""))

    def test_concurrent_appends_keep_unique_ids(self, store: TranscriptStore) -> None:
        """複数スレッドからの追記でもIDは一意・連番"""

        def worker() -> None:
            for i in range(50):
                store.append(_fragment(f"line {i}"), float(i))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        ids = [line.id for line in store.snapshot()]
        assert ids == list(range(1, 201))
        timestamps = [line.timestamp for line in store.snapshot()]
        assert timestamps == sorted(timestamps)


class TestFreezeAndReset:
    """凍結・リセットのテスト"""

    def test_frozen_store_rejects_appends(self, store: TranscriptStore) -> None:
        """凍結後はRECORDINGでも追記不可"""
        store.append(_fragment(), 0.0)
        store.freeze()
        with pytest.raises(NotRecording):
            store.append(_fragment(), 1.0)
        assert store.is_frozen is True
        assert len(store) == 1

    def test_frozen_store_cannot_be_reset(self, store: TranscriptStore) -> None:
        store.freeze()
        with pytest.raises(SessionError):
            store.reset()

    def test_reset_clears_lines_and_restarts_ids(self, store: TranscriptStore) -> None:
        store.append(_fragment(), 0.0)
        store.append(_fragment(), 1.0)
        store.reset()
        assert len(store) == 0
        assert store.append(_fragment(), 0.0).id == 1


class TestSnapshot:
    """スナップショットのテスト"""

    def test_snapshot_is_isolated_from_later_appends(self, store: TranscriptStore) -> None:
        """取得後の追記はスナップショットに影響しない"""
        store.append(_fragment("a"), 0.0)
        snapshot = store.snapshot()
        store.append(_fragment("b"), 1.0)
        assert [line.text for line in snapshot] == ["a"]
        assert len(store.snapshot()) == 2


class TestFormatElapsed:
    """経過時間表示のテスト"""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00"), (5.9, "00:05"), (65, "01:05"), (3600, "01:00:00"), (-3, "00:00")],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_elapsed(seconds) == expected

    def test_line_display_time(self, store: TranscriptStore) -> None:
        line = store.append(_fragment(), 125.0)
        assert line.display_time == "02:05"
