"""
HTTP service for the portal listing engine.
"""
