"""
Zap: spaced-repetition scheduling and session scoring.

Subpackages:
- zap.study: scheduling, prioritization, XP, progression, focus integrity
- zap.delivery: SQLite state store and the terminal front-end
"""

__version__ = "1.0.0"
