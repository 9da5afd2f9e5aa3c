#!/usr/bin/env python3
"""
Notelytix - Fragment Sources Module
文字起こしフラグメント供給源の抽象化
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from notelytix.domain import TranscriptFragment

# フラグメントの受け取り先（SessionController.submit_fragment）
FragmentSink = Callable[[TranscriptFragment], object]


class FragmentSource(ABC):
    """
    フラグメント供給源の抽象基底クラス（キャンセル可能な定期タスク）

    RECORDING中だけ起動され、RECORDINGを抜けた時点でキャンセルされる。
    実装は追記専用・時系列順・レート上限ありの契約を守ること。
    """

    @abstractmethod
    def start(self, sink: FragmentSink) -> None:
        """
        フラグメントの供給を開始

        Args:
            sink: フラグメントを受け取る関数
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """
        供給の停止を指示（ブロックしない）

        コントローラのロック保持中に呼ばれるため、スレッドの終了は待たないこと。
        停止指示の後に届いたフラグメントはコントローラ側で NotRecording として拒否される。
        """
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """供給中かどうか"""
        pass

    def join(self, timeout: float | None = None) -> None:
        """
        キャンセル後の供給の終了を待つ（コントローラのロック外で呼ばれる）

        Args:
            timeout: 最大待機秒数（Noneの場合は実装の既定値）
        """
        pass
