"""Pipelines over spreadsheet data: record normalization, credential checks,
candidate querying, and the flows that tie them to the gateway.
"""
