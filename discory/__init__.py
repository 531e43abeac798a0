"""
Discory Backend — Social catalogue API for vinyl records and CDs.
"""

__version__ = "1.0.0"
