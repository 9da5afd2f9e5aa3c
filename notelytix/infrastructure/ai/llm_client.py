#!/usr/bin/env python3
"""
Notelytix - LLM Clients Module
要約用LLMクライアントの抽象化（アダプタパターン）
"""

import re
from abc import ABC, abstractmethod
from typing import Any

from anthropic import Anthropic
from anthropic.types import TextBlock
from openai import OpenAI

from notelytix.domain import LLMBackend, SummarySettings


class LLMClient(ABC):
    """
    LLMクライアントの抽象基底クラス

    異なるLLMプロバイダ（Claude、vLLMなど）を同じインターフェースで扱う。
    """

    @abstractmethod
    def __call__(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        """
        LLM APIでテキストを生成

        Args:
            system_prompt: システムプロンプト
            user_prompt: ユーザープロンプト
            temperature: 生成の確率性（Noneの場合は各LLMのデフォルト値）
            max_tokens: 最大トークン数（Noneの場合は設定値）

        Returns:
            str | None: 生成されたテキスト or None

        Raises:
            Exception: API呼び出しエラー
        """
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """使用しているモデル名"""
        pass

    @abstractmethod
    def get_backend_info(self) -> str:
        """
        使用しているLLMバックエンドの情報を返す

        Returns:
            str: バックエンド情報（例: "Claude (claude-haiku-4-5-20251001)"）
        """
        pass


class ClaudeClient(LLMClient):
    """
    Claude APIクライアント
    """

    def __init__(self, settings: SummarySettings) -> None:
        # 設定検証済みのため、anthropic_api_keyは必ず存在する
        assert settings.anthropic_api_key is not None
        self.settings = settings
        self.client = Anthropic(api_key=settings.anthropic_api_key)

    @property
    def model(self) -> str:
        return self.settings.claude_model

    def __call__(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        kwargs: dict[str, Any] = {
            "model": self.settings.claude_model,
            "max_tokens": max_tokens or self.settings.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        message = self.client.messages.create(**kwargs)

        # TextBlockのみを連結
        texts = [block.text for block in message.content if isinstance(block, TextBlock)]
        return "\n".join(texts).strip() or None

    def get_backend_info(self) -> str:
        return f"Claude ({self.settings.claude_model})"


class VLLMClient(LLMClient):
    """
    vLLM OpenAI互換APIクライアント

    責務:
    - vLLMサーバへのリクエスト送信（OpenAI互換API）
    - 思考過程タグの除去とMarkdownブロックの抽出
    """

    # <think>...</think> タグ削除用
    _THINK_TAG_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL)
    # ```markdown ... ``` ブロック抽出用
    _MARKDOWN_BLOCK_PATTERN = re.compile(r"```markdown\s*\n(.*?)\n```", re.DOTALL)

    def __init__(self, settings: SummarySettings) -> None:
        self.settings = settings
        self.client = OpenAI(
            base_url=settings.vllm_base_url,
            api_key=settings.vllm_api_key or "EMPTY",
        )

    @property
    def model(self) -> str:
        return self.settings.vllm_model

    @classmethod
    def _extract_markdown_block(cls, text: str) -> str:
        """
        レスポンスから最後のmarkdownコードブロックを抽出

        <think>タグを削除してから ```markdown ... ``` の中身を取り出す。
        ブロックがなければタグ除去後のテキストをそのまま返す。

        Examples:
            >>> VLLMClient._extract_markdown_block("<think>x</think>\\n```markdown\\n# Summary\\n```")
            '# Summary'
        """
        text_without_think = cls._THINK_TAG_PATTERN.sub("", text)
        matches = cls._MARKDOWN_BLOCK_PATTERN.findall(text_without_think)
        return matches[-1].strip() if matches else text_without_think.strip()

    def __call__(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | None:
        kwargs: dict[str, Any] = {
            "model": self.settings.vllm_model,
            "max_tokens": max_tokens or self.settings.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if temperature is not None:
            kwargs["temperature"] = temperature

        response = self.client.chat.completions.create(**kwargs)

        if response.choices and (content := response.choices[0].message.content):
            return self._extract_markdown_block(content.strip()) or None
        return None

    def get_backend_info(self) -> str:
        return f"vLLM ({self.settings.vllm_model} @ {self.settings.vllm_base_url})"


# ========================================
# Factory Function
# ========================================
def create_llm_client(settings: SummarySettings) -> LLMClient:
    """
    設定に基づいてLLMクライアントを生成

    Raises:
        ValueError: バックエンド設定が無効な場合
    """
    match settings.backend:
        case LLMBackend.CLAUDE:
            return ClaudeClient(settings=settings)
        case LLMBackend.VLLM:
            return VLLMClient(settings=settings)
        case _:
            raise ValueError(
                f"Invalid summary.backend: '{settings.backend}'. "
                f"Must be '{LLMBackend.CLAUDE}' or '{LLMBackend.VLLM}'"
            )
