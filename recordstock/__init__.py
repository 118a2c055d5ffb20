"""
recordstock - a small command-line inventory manager for a music collection.

Artists, albums, formats and stock quantities are kept in an embedded SQLite
store; records are loaded from delimited files, searched by field and
purchased (which decrements stock).
"""

__version__ = "0.1.0"
__author__ = "recordstock Contributors"
__license__ = "GPL-2.0"

__all__ = ["__version__"]
