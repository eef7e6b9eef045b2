"""
TaskClarify SOP Engine — Entry Point.

Single entry point: `python main.py` starts the reminder daemon.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.daemon import main

if __name__ == "__main__":
    main()
