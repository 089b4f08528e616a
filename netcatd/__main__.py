"""Allow running as ``python -m netcatd``."""

import sys

from .cli import main

sys.exit(main())
