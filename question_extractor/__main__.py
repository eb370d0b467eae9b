"""
Entry point for running the package as a module: python -m question_extractor
"""

import sys
from question_extractor.cli import main

if __name__ == "__main__":
    sys.exit(main())
