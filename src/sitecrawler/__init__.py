"""
Bounded-concurrency crawler that fetches every same-host page reachable from a
start URL or sitemap exactly once and reports status codes and response times.
"""
from sitecrawler.core import CrawlRecord, CrawlSnapshot, Frontier
from sitecrawler.scheduler import Crawler
from sitecrawler.sitemap import SitemapExpander

__version__ = "1.0.0"
__all__ = ["Crawler", "CrawlRecord", "CrawlSnapshot", "Frontier", "SitemapExpander"]
