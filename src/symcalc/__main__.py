"""Run the command line demonstration with ``python -m symcalc``."""
import sys

from symcalc.cli import main

if __name__ == "__main__":
    sys.exit(main())
