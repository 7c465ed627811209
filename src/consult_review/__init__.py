"""Clinical consult review: case lifecycle, expert assignment and unread tracking."""

__version__ = "0.1.0"
