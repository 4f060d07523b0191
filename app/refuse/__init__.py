"""refuse - a recoverable trash can for the command line.

Files are moved into a trash location instead of being deleted, and can
later be restored or permanently removed.
"""

__version__ = "0.1.0"
