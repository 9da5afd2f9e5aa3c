#!/usr/bin/env python3
"""
Notelytix - Summarizer Module
インフラ層：停止済みセッションの会議要約（要約コラボレータ）
"""

from collections.abc import Sequence

from notelytix.domain import (
    SummaryArtifact,
    SummaryError,
    SummarySettings,
    TranscriptLine,
)

from .llm_client import LLMClient
from .prompts import MeetingSummaryPromptStrategy, PromptStrategy


class MeetingSummarizer:
    """
    会議要約コラボレータ

    責務:
    - 凍結済み文字起こしからのプロンプト構築
    - LLMによる要約生成
    - 失敗を SummaryError として呼び出し元へ報告

    Note: セッション状態には一切触れない
    """

    def __init__(
        self,
        llm_client: LLMClient,
        settings: SummarySettings,
        prompt_strategy: PromptStrategy | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.settings = settings
        self.prompt_strategy = prompt_strategy or MeetingSummaryPromptStrategy()

    def summarize(self, title: str, lines: Sequence[TranscriptLine]) -> SummaryArtifact:
        """
        要約を生成

        Args:
            title: 会議タイトル
            lines: 凍結済みの文字起こし

        Returns:
            SummaryArtifact: 生成された要約

        Raises:
            SummaryError: 文字起こしが空、LLM呼び出し失敗、または空の応答の場合
        """
        if not lines:
            raise SummaryError("Transcript is empty; nothing to summarize")

        user_prompt = self.prompt_strategy.build_user_prompt(title=title, lines=lines)
        try:
            content = self.llm_client(
                system_prompt=self.prompt_strategy.system_prompt,
                user_prompt=user_prompt,
                temperature=self.settings.temperature,
            )
        except Exception as e:
            raise SummaryError(f"Summary generation failed: {e}") from e

        if not content:
            raise SummaryError("Summary generation returned no content")

        return SummaryArtifact(content=content, model=self.llm_client.model)
