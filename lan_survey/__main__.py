"""
Entry point for running lan_survey as a module.

This allows the package to be executed with: python -m lan_survey
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
