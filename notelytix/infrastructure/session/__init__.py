#!/usr/bin/env python3
"""
Notelytix - Session Infrastructure
セッションのライフサイクル制御
"""

from .controller import SessionController

__all__ = [
    "SessionController",
]
