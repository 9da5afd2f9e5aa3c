#!/usr/bin/env python3
"""
Notelytix - Package Entry Point
python -m notelytix で実行
"""

from notelytix.presentation.cli import main

if __name__ == "__main__":
    main()
