"""memopad: ordered personal memos persisted as front-matter Markdown files."""

__version__ = "0.1.0"
