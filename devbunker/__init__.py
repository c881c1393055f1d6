"""
DevBunker Portal.

Flask web front end for the DevBunker content platform: content grids,
mindmap editor, comments, bookmarks and admin moderation, all backed by
the DevBunker REST API.
"""

__version__ = '1.0.0'
