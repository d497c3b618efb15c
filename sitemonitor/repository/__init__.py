from .crawl_runs import CrawlRunRepository, data_key

__all__ = ["CrawlRunRepository", "data_key"]
