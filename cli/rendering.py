"""Utilities for rendering bookmark trees and tab lists in the CLI."""

from __future__ import annotations

from typing import Sequence

from shelf.db.models import BookmarkNode, Tab
from shelf.organize.models import AnnotatedTab
from shelf.scraper.models import EnrichmentData, EnrichmentStatus


def render_tree(root: BookmarkNode) -> str:
    """Render a bookmark subtree as an ASCII tree.

    Folders are shown with 📁, bookmarks with 🔖 followed by their URL.
    """
    lines = [f"📁 {root.title}  [{root.id}]"]
    stack = [(child, "", i == len(root.children or []) - 1)
             for i, child in reversed(list(enumerate(root.children or [])))]
    while stack:
        node, prefix, is_last = stack.pop()
        connector = "└── " if is_last else "├── "
        if node.is_folder:
            lines.append(f"{prefix}{connector}📁 {node.title}  [{node.id}]")
            child_prefix = prefix + ("    " if is_last else "│   ")
            children = node.children or []
            stack.extend(
                (child, child_prefix, i == len(children) - 1)
                for i, child in reversed(list(enumerate(children)))
            )
        else:
            lines.append(f"{prefix}{connector}🔖 {node.title}  <{node.url}>")
    return "\n".join(lines)


def describe_enrichment(data: EnrichmentData) -> str:
    if data.status is EnrichmentStatus.NOT_FOUND:
        return "not found"
    if data.status is not EnrichmentStatus.RESOLVED:
        return "-"
    ratings = "?" if data.num_ratings is None else f"{data.num_ratings:,}"
    rating = "?" if data.rating is None else f"{data.rating:.1f}"
    return f"{rating}★ ({ratings} ratings)"


def render_tabs(tabs: Sequence[Tab]) -> str:
    lines = []
    for tab in tabs:
        marker = "*" if tab.highlighted else " "
        lines.append(f"{marker} {tab.index:>3}  [{tab.id}]  {tab.title or '(untitled)'}  <{tab.url}>")
    return "\n".join(lines)


def render_annotated_tabs(entries: Sequence[AnnotatedTab]) -> str:
    return "\n".join(
        f"  {pos:>3}  {entry.tab.title or '(untitled)'}  — {describe_enrichment(entry.enrichment)}"
        for pos, entry in enumerate(entries)
    )
