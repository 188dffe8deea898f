#!/usr/bin/env python3
"""Local entrypoint to run the pre-publish checks without installing the console script.

Usage:
  python scripts/verify.py [--root .] [--report out.json]

This calls the same verify_package used by the npm-prepublish console script.
"""

from __future__ import annotations

import sys
from pathlib import Path

# allow running from a checkout without `pip install -e .`
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from npm_prepublish.cli import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
