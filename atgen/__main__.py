#!/usr/bin/env python3
"""
Enable running the generator directly:
    python -m atgen > deps/deps.jl
"""
from .cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
