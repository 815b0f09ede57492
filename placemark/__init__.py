"""
Placemark - reorganize photo libraries with atomic, undoable file operations.
"""

__version__ = "0.3.0"
