"""
HTTP trigger service for the rental listings watcher.
"""
