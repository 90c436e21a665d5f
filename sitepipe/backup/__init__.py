"""
Versioned backups of the content and public trees.
"""
