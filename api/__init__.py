"""
Data Quality Analysis API
=========================

HTTP service exposing the table analysis pipeline.
"""

__version__ = "0.1.0"
