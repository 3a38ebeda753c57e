"""Text index layer."""

from spidermonkey.index._internal.indexing.lexical import LexicalIndex

__all__ = ["LexicalIndex"]
