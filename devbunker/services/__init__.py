"""
DevBunker Services Package.

Portal-side logic shared by the page routes:
- grid: filtering, stats and pagination for list pages
- bulk: sequential bulk moderation with per-item results
- comments: one-level comment trees and comment validation
- share: share links for content items
- diagram: mindmap graph model, element conversion and SVG rendering
"""
