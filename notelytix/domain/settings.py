#!/usr/bin/env python3
"""
Notelytix - Settings Schema
設定のスキーマ定義（Pydanticモデル）
"""

from enum import IntEnum, StrEnum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from typing_extensions import Self

from .models import DEFAULT_TITLE

# ========================================
# Private Constants
# ========================================
_SIMULATED_PHRASES = [
    "This is a simulated live transcription line showing real-time updates...",
    "Let's go over the quarterly numbers.",
    "I've been looking at the report you sent yesterday.",
    "I want to highlight the growth in the enterprise sector.",
    "That jumped out at me too.",
    "Can we set a follow-up for next week?",
]


# ========================================
# Audio Configuration（設定コラボレータ）
# ========================================
class AudioFormat(StrEnum):
    """送信音声フォーマット"""

    PCM16 = "pcm16"
    OPUS = "opus"


class SampleRate(IntEnum):
    """サンプルレート（Hz）"""

    KHZ_16 = 16000
    KHZ_32 = 32000
    KHZ_48 = 48000


class AudioSettings(BaseSettings):
    """音声フォーマット設定（start()時に読み取る不透明なパラメータ）"""

    format: AudioFormat = Field(
        default=AudioFormat.OPUS,
        description="音声フォーマット - pcm16（非圧縮）または opus（最適化）",
    )
    sample_rate: SampleRate = Field(
        default=SampleRate.KHZ_16,
        description="サンプルレート（Hz） - 16000 / 32000 / 48000",
    )

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, value: object) -> object:
        """'PCM16' / 'pcm' のような表記ゆれを受け付ける"""
        if isinstance(value, str):
            lowered = value.strip().lower()
            return AudioFormat.PCM16 if lowered == "pcm" else lowered
        return value

    @field_validator("sample_rate", mode="before")
    @classmethod
    def normalize_sample_rate(cls, value: object) -> object:
        """'16k' / '48kHz' 表記を受け付ける"""
        if isinstance(value, str):
            lowered = value.strip().lower().removesuffix("hz")
            if lowered.endswith("k"):
                return int(float(lowered[:-1]) * 1000)
            return int(lowered)
        return value


# ========================================
# Session Configuration
# ========================================
class SessionSettings(BaseSettings):
    """セッションライフサイクル設定"""

    default_title: str = Field(
        default=DEFAULT_TITLE,
        description="新規セッションのタイトル",
    )
    connect_timeout_sec: float = Field(
        default=10.0,
        gt=0,
        description="CONNECTING状態の上限時間（秒） - 超過でERROR(timeout)",
    )
    buffering_timeout_sec: float = Field(
        default=10.0,
        gt=0,
        description="BUFFERING状態の上限時間（秒） - 超過でERROR(timeout)",
    )
    history_limit: int = Field(
        default=20,
        ge=0,
        description="保持する過去セッション（停止済み）の最大数",
    )


# ========================================
# Simulator Configuration
# ========================================
class HandshakeOutcome(StrEnum):
    """模擬バックエンドのハンドシェイク結果"""

    SUCCESS = "success"
    FAILURE = "failure"
    SILENT = "silent"  # 応答しない（タイムアウト検証用）


class SimulatorSettings(BaseSettings):
    """模擬文字起こしバックエンド設定"""

    handshake_delay_sec: float = Field(
        default=2.0,
        ge=0,
        description="ハンドシェイク完了までの遅延（秒）",
    )
    handshake_outcome: HandshakeOutcome = Field(
        default=HandshakeOutcome.SUCCESS,
        description="ハンドシェイク結果 - success / failure / silent",
    )
    tick_interval_sec: float = Field(
        default=2.0,
        gt=0,
        description="フラグメント生成の判定間隔（秒）",
    )
    emission_probability: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="1ティックあたりのフラグメント生成確率",
    )
    speakers: list[str] = Field(
        default=["Me", "Client"],
        min_length=1,
        description="話者ラベル",
    )
    phrases: list[str] = Field(
        default_factory=lambda: list(_SIMULATED_PHRASES),
        min_length=1,
        description="生成する発話テキスト",
    )
    seed: int | None = Field(
        default=None,
        description="乱数シード（Noneなら非決定的）",
    )
    shutdown_timeout_sec: float = Field(
        default=1.0,
        description="生成スレッド停止タイムアウト（秒）",
    )


# ========================================
# Summary Configuration
# ========================================
class LLMBackend(StrEnum):
    """LLMバックエンドの種類"""

    CLAUDE = "claude"
    VLLM = "vllm"


class SummarySettings(BaseSettings):
    """会議要約設定"""

    enabled: bool = Field(
        default=False,
        description="要約機能の有効/無効",
    )
    backend: LLMBackend = Field(
        default=LLMBackend.CLAUDE,
        description="LLMバックエンド - claude または vllm",
    )
    # Claude固有設定
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic APIキー - backend='claude' の場合に必要。",
    )
    claude_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Claude APIモデル名",
    )
    # vLLM固有設定
    vllm_base_url: str | None = Field(
        default=None,
        description="vLLMサーバのベースURL（例: http://localhost:8000/v1）",
    )
    vllm_model: str = Field(
        default="Qwen/Qwen3-30B-A3B",
        description="vLLMモデル名",
    )
    vllm_api_key: str | None = Field(
        default=None,
        description="vLLM APIキー（サーバが認証を要求する場合のみ必要）",
    )
    # 共通設定
    max_tokens: int = Field(
        default=4096,
        description="要約の最大トークン数",
    )
    temperature: float | None = Field(
        default=0.2,
        description="生成の確率性（Noneなら各LLMのデフォルト）",
    )

    @model_validator(mode="after")
    def validate_backend_config(self) -> Self:
        """バックエンド固有の必須設定を検証"""
        if not self.enabled:
            return self

        if self.backend == LLMBackend.CLAUDE:
            if not self.anthropic_api_key:
                raise ValueError(
                    "summary.anthropic_api_key is required when backend='claude'"
                )
        elif self.backend == LLMBackend.VLLM:
            if not self.vllm_base_url:
                raise ValueError(
                    "summary.vllm_base_url is required when backend='vllm'"
                )

        return self


# ========================================
# Application Configuration
# ========================================
class AppSettings(BaseSettings):
    """アプリケーション全体設定"""

    save_json: bool = Field(
        default=True,
        description="セッション停止時にJSON形式で保存するかどうか",
    )
    output_dir: str = Field(
        default=".",
        description="JSON保存先ディレクトリ",
    )
    input_poll_interval_sec: float = Field(
        default=0.1,
        description="入力ポーリング間隔（秒）",
    )
    speaker_column_width: int = Field(
        default=8,
        description="CLI表示の話者列の幅（表示幅）",
    )


# ========================================
# Main Settings Class
# ========================================
class Settings(BaseSettings):
    """
    Notelytix全体設定

    設定の読み込み優先順位（後勝ち）:
    1. デフォルト値（各Settingsクラス内）
    2. config.toml（プロジェクトルート）
    3. config.local.toml（プロジェクトルート）
    """

    audio: AudioSettings = Field(default_factory=AudioSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)
    app: AppSettings = Field(default_factory=AppSettings)
