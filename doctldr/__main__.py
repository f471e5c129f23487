"""Allow ``python -m doctldr``."""

import sys

from .cli import main

sys.exit(main())
