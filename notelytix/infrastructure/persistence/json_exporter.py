#!/usr/bin/env python3
"""
Notelytix - JSON Exporter
インフラ層：停止済みセッションのJSON永続化
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from notelytix.domain import SessionSnapshot


class SessionJsonExporter:
    """
    SessionSnapshotをJSON形式で永続化

    責務:
    - セッションデータのシリアライズ
    - ファイルシステムへの保存
    """

    @staticmethod
    def to_dict(session: SessionSnapshot) -> dict[str, Any]:
        """セッションをJSON化可能な辞書に変換"""
        output_data: dict[str, Any] = {
            "id": session.id,
            "title": session.title,
            "state": str(session.state),
            "started_at": session.started_at.isoformat() if session.started_at else None,
            "duration_seconds": round(session.duration_seconds, 2),
            "total_lines": len(session.transcript),
            "transcript": [
                {
                    "id": line.id,
                    "speaker": line.speaker,
                    "text": line.text,
                    "timestamp": round(line.timestamp, 2),
                    "time": line.display_time,
                }
                for line in session.transcript
            ],
        }

        # 要約があれば追加
        if session.summary:
            output_data["summary"] = {
                "content": session.summary.content,
                "model": session.summary.model,
                "created_at": session.summary.created_at.isoformat(),
            }

        return output_data

    @staticmethod
    def save_to_file(
        session: SessionSnapshot,
        output_path: Path | None = None,
        output_dir: Path | None = None,
    ) -> Path:
        """
        セッションをJSONファイルに保存

        Args:
            session: 保存するセッション
            output_path: 出力先パス（Noneの場合は自動生成）
            output_dir: 自動生成時の出力ディレクトリ（Noneの場合はカレント）

        Returns:
            Path: 保存されたファイルのパス
        """
        if output_path is None:
            # デフォルトファイル名: meeting_YYYYMMDD_HHMMSS_<セッションID先頭8桁>.json
            started = session.started_at or datetime.now()
            filename = f"meeting_{started.strftime('%Y%m%d_%H%M%S')}_{session.id[:8]}.json"
            output_path = (output_dir or Path(".")) / filename

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(SessionJsonExporter.to_dict(session), f, ensure_ascii=False, indent=2)

        return output_path
