"""Allow ``python -m hapticfx``."""

from __future__ import annotations

import sys

from hapticfx.cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
