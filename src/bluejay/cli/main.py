"""
Main CLI entry point for Bluejay vesting.
"""

import logging
import sys

from bluejay.cli.vesting_commands import main as vesting_main

logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point"""
    logger.debug("Starting bluejay-vesting CLI")
    return vesting_main()


if __name__ == "__main__":
    sys.exit(main() or 0)
