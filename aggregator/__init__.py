"""
Competition announcement aggregator.
"""
