#!/usr/bin/env python3
"""
Notelytix - Presentation Layer
プレゼンテーション層：UI、セッション操作の窓口
"""

# セッションファサード
from .app import SessionFacade

__all__ = [
    # セッションファサード
    "SessionFacade",
]
