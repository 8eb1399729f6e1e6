"""
Contact book backend: contacts and groups over a relational store, with
paginated listing, substring search and CSV import/export.
"""

__version__ = "0.1.0"
