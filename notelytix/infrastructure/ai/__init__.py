#!/usr/bin/env python3
"""
Notelytix - AI Infrastructure
AI関連のインフラストラクチャ層（LLM会議要約）
"""

# 要約生成
from .summarizer import MeetingSummarizer

# LLMクライアント
from .llm_client import LLMClient, create_llm_client

# プロンプト
from . import prompts

__all__ = [
    # 要約生成
    "MeetingSummarizer",
    # LLMクライアント
    "LLMClient",
    "create_llm_client",
    # プロンプトモジュール
    "prompts",
]
