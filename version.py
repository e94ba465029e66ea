"""
Version management for the zone view factor tools.
"""

__version__ = "0.3.0"


def get_version():
    """Get current application version."""
    return __version__
