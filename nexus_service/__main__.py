"""Allow running as ``python -m nexus_service``."""

import sys

from .main import main

sys.exit(main())
