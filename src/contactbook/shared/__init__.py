"""
Shared infrastructure: configuration-backed database access, logging,
error types and service result values.
"""
