"""
Scraper orchestration and catalog deduplication.
"""
