#!/usr/bin/env python
"""
Workout tracker CLI runner.

Usage:
    python run.py log "Push Day" -e "Bench Press,80,8" -e "Bench Press,80,8"
    python run.py history       # browse and filter workouts
    python run.py analyze       # show summary stats
    python run.py achievements  # check and list achievements
    python run.py plan          # weekly plan and scheduled workouts
    python run.py export -o backup.json
    python run.py visualize     # generate charts
"""

import sys
from pathlib import Path

# add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from zenfit.main import main

if __name__ == "__main__":
    main()
