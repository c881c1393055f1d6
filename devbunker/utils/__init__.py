"""
DevBunker Utilities Package.
"""
