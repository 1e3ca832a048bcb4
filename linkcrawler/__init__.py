"""
Link Crawler

Crawls a website from a seed URL and reports the status of every link it finds.
"""

__version__ = "1.0.0"
__description__ = "An asynchronous dead-link checker for websites"
