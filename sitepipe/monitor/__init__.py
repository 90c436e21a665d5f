"""
Content freshness monitoring.
"""
