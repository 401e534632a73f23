"""
aggregator/api package marker.
"""
