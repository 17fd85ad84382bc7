"""leetrack: spaced-repetition tracker for accepted LeetCode submissions."""

from leetrack.consts import VERSION

__version__ = VERSION
