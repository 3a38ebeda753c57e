"""File discovery."""

from spidermonkey.index._internal.discovery.scanner import FileScanner, ScanResult

__all__ = ["FileScanner", "ScanResult"]
