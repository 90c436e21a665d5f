"""
Read-only checks over the generated site: HTML validation and link checking.
"""
