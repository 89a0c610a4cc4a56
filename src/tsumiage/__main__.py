# src/tsumiage/__main__.py

from __future__ import annotations

from .cli.main import main

main()
