"""
Member Directory Extraction Engine.

This package provides tools for harvesting member profiles:
- Fetching profile pages from the upstream member directory
- Extracting labeled fields with exact and normalized matching
- Scoring and validating extracted records
- Caching validated records and batching id ranges
"""

__version__ = "2.1.0"
