# =============================================================================
# ONEPOINT-SITE Content Pipeline
# =============================================================================
"""
Command line tools for the Stone OnePoint Solutions website.

Areas:
- config:   environment configuration + .env loading
- update:   template substitution, service pages, sitemap.xml, robots.txt
- backup:   versioned backups of content/ + public/ with manifests
- validate: HTML/SEO/accessibility validation, link checking
- monitor:  content freshness monitoring

All tools are single-threaded and run to completion.
"""

__version__ = "1.0.0"
