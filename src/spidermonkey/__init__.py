"""SpiderMonkey - live code search over a directory tree."""

__version__ = "0.1.0"
