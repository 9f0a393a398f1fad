#!/usr/bin/env python3
"""SimpleTimer entry point.

Run with:
    python main.py run --minutes 5
    python -m simpletimer status
"""

import sys

from simpletimer.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
