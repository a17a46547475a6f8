"""
Main entry point for cntblank.
Profiles tabular files column by column and writes a blank/type report.
"""

import sys
from pathlib import Path

# Allow running from a source checkout without installing
sys.path.insert(0, str(Path(__file__).parent))

from cntblank.cli import main


if __name__ == "__main__":
    sys.exit(main())
