"""Development entrypoint for the warcodex CLI and HTTP API."""

from __future__ import annotations

from warcodex.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main())
