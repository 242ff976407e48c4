"""
Main entry point for running the package as a module.

Usage:
    python -m ospry format-url URL --max-height 150
    python -m ospry upload cat.jpg --private
    python -m ospry gallery --port 3000
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
