"""Internal implementation of the index engine. Import from spidermonkey.index instead."""
