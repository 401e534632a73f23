"""
Source adapter exports.
"""

from aggregator.scraping.adapters.ctftime import CTFTimeAdapter
from aggregator.scraping.adapters.hku import HKUBoardAdapter
from aggregator.scraping.adapters.hkust import HKUSTBoardAdapter

__all__ = ["CTFTimeAdapter", "HKUBoardAdapter", "HKUSTBoardAdapter"]
