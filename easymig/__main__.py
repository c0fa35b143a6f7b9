"""Allow ``python -m easymig``."""

import sys

from .cli import main

sys.exit(main())
