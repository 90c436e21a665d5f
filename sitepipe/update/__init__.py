"""
Content generation: template substitution, service pages, sitemap and robots.txt.
"""
