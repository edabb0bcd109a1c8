"""Candidate screening backend: spreadsheet gateway, APIs, and query engine.

This package authenticates to the Sheets API as a service account, serves the
login-validation and candidate-data endpoints, and normalizes, filters, sorts
and pages candidate records for the dashboard.
"""

__version__ = "0.1.0"
