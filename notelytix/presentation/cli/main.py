#!/usr/bin/env python3
"""
Notelytix - CLI Main Entry Point
CLIアプリケーションのエントリーポイント
"""

import argparse
from pathlib import Path

from colorama import init as colorama_init  # type: ignore[import-untyped]

from notelytix.domain import HandshakeOutcome

from .controller import CLIController


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI引数を解析する"""
    parser = argparse.ArgumentParser(
        prog="notelytix",
        description="Meeting recorder session console with simulated live transcription",
    )
    parser.add_argument(
        "-c",
        "--config-dir",
        type=Path,
        default=None,
        metavar="DIR",
        help="Directory containing config.toml / config.local.toml",
    )
    parser.add_argument(
        "--handshake",
        choices=[outcome.value for outcome in HandshakeOutcome],
        default=None,
        help="Force the simulated handshake outcome (success / failure / silent)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="N",
        help="Random seed for the simulated transcript",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not save the transcript as JSON when recording stops",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """エントリーポイント"""
    # CLI引数解析
    args = parse_args(argv)

    # colorama初期化
    colorama_init(autoreset=True)

    # CLIController起動
    controller = CLIController(
        config_dir=args.config_dir,
        handshake=HandshakeOutcome(args.handshake) if args.handshake else None,
        seed=args.seed,
        save_json=not args.no_save,
    )
    controller.run()


if __name__ == "__main__":
    main()
