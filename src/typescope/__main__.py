"""Entry point for `python -m typescope`."""

import sys

from typescope.cli import main

sys.exit(main())
