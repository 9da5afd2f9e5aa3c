#!/usr/bin/env python3
"""
Notelytix - Infrastructure Layer
インフラストラクチャ層: セッション制御、外部コラボレータ、永続化、設定読み込み
"""

from .config import load_settings

__all__ = [
    "load_settings",
]
