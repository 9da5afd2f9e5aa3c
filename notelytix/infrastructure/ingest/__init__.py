#!/usr/bin/env python3
"""
Notelytix - Ingest Infrastructure
文字起こしバックエンドとフラグメント供給源
"""

# フラグメント供給源
from .sources import FragmentSink, FragmentSource
from .simulator import LiveIngestSimulator

# バックエンド
from .backend import BackendListener, SimulatedBackend, TranscriptionBackend

__all__ = [
    # 供給源
    "FragmentSink",
    "FragmentSource",
    "LiveIngestSimulator",
    # バックエンド
    "BackendListener",
    "SimulatedBackend",
    "TranscriptionBackend",
]
