"""
Business logic layer for the archives CLI.

This facade exposes the public functions from the domain-specific modules
in the 'api' package.
"""

from .lifecycle import create, delete, get_info, set_enabled
from .records import (
    delete_archive,
    find_by_channel_id,
    get_archive,
    list_archives,
    list_by_author,
    save_archive,
    search_archives,
    update_channels,
    update_status,
)
from .reconcile import scan
from .stats import categories_used, compute

__all__ = [
    "create",
    "delete",
    "get_info",
    "set_enabled",
    "scan",
    "save_archive",
    "get_archive",
    "list_archives",
    "list_by_author",
    "delete_archive",
    "update_status",
    "update_channels",
    "search_archives",
    "find_by_channel_id",
    "categories_used",
    "compute",
]
