"""
ZFS API - HTTP action-dispatch service for ZFS dataset management.

Provides a single endpoint for:
- Dataset inventory (recursive listing)
- Snapshot creation and latest-snapshot lookup
- Cloning (from a given snapshot or from the latest one)
- Rollback and recursive destroy
- Zvol device presence checks

Responses are rendered as JSON or XML from one shared envelope.
"""

__version__ = "1.0.0"
__author__ = "ZFS API"
