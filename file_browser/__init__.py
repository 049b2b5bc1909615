"""
File browser - list and download files under a root directory over HTTP.
"""

__version__ = "1.0.0"
