#!/usr/bin/env python3
"""
Notelytix - Prompt Templates
会議要約用のプロンプトテンプレート
"""

from collections.abc import Sequence
from typing import Protocol

from notelytix.domain import TranscriptLine


def format_transcript(lines: Sequence[TranscriptLine]) -> str:
    """
    文字起こし行を経過時間・話者付きテキストにフォーマット

    Returns:
        str: "[MM:SS] 話者: テキスト" の改行区切り
    """
    return "\n".join(f"[{line.display_time}] {line.speaker}: {line.text}" for line in lines)


class PromptStrategy(Protocol):
    """
    プロンプト構築戦略の抽象インターフェース
    """

    @property
    def system_prompt(self) -> str:
        """システムプロンプトを取得"""
        ...

    def build_user_prompt(self, title: str, lines: Sequence[TranscriptLine]) -> str:
        """ユーザープロンプトを構築"""
        ...


class MeetingSummaryPromptStrategy:
    """
    会議終了後の要約用プロンプト戦略

    責務:
    - 会議アシスタントとしてのシステムプロンプト提供
    - 全発言からのユーザープロンプト構築
    """

    @property
    def system_prompt(self) -> str:
        """会議要約用システムプロンプト"""
        return """
You are an expert meeting assistant. Your goal is to provide a concise and accurate summary of the following meeting transcript.
Focus on:
1. Key decisions made.
2. Action items and owners.
3. Important discussion points.

The transcript comes from live speech recognition and may contain recognition errors; correct them from context.
Do not add greetings, preambles or commentary.

# Output (Markdown)
## Overview
(2-3 lines)

## Key Decisions
- ...

## Action Items
- [Owner] Task

## Discussion Points
- ...
"""

    def build_user_prompt(self, title: str, lines: Sequence[TranscriptLine]) -> str:
        """
        会議要約用のユーザープロンプトを構築

        Args:
            title: 会議タイトル
            lines: 凍結済みの全文字起こし行

        Returns:
            str: 構築されたユーザープロンプト
        """
        return f"""
Meeting: {title}

Transcript:
{format_transcript(lines)}
"""
