"""
rankqa - ranked-list quality evaluation for search backends.
"""

__version__ = "0.1.0"
