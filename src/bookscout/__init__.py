# ABOUTME: bookscout turns Goodreads and Fandom book pages into normalized catalog records.
# ABOUTME: See bookscout.core.pipeline for the entry point.

__version__ = "0.1.0"
