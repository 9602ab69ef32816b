#!/usr/bin/env python3
"""Allow running as: python -m nomina"""

import sys

from nomina.cli import main

sys.exit(main())
