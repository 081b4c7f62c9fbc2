"""
Entry point for running Zap as a module.

Usage:
    python -m zap due
"""

from zap.delivery.cli import main

if __name__ == "__main__":
    main()
