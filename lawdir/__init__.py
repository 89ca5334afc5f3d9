"""
Legal Directory Service
=======================

JSON API for a directory of lawyers and law firms:
1. Profile submission with admin moderation before publishing
2. Faceted search over published profiles
3. Client reviews with moderation and owner responses
"""

__version__ = "1.0.0"
