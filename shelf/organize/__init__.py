"""Organize package — annotate, sort, de-duplicate and rebuild bookmarks and tabs."""

from shelf.organize.operations import (
    backup_folder,
    find_folder,
    merge_folders,
    open_folder_in_window,
    organize_folder,
    organize_tabs,
    organize_window,
    random_walk,
    random_walk_sample,
)

__all__ = [
    "backup_folder",
    "find_folder",
    "merge_folders",
    "open_folder_in_window",
    "organize_folder",
    "organize_tabs",
    "organize_window",
    "random_walk",
    "random_walk_sample",
]
