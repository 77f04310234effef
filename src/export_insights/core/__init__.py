"""
Core reconciliation and aggregation pipeline stages.
"""
