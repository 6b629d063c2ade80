"""Dependency discovery: import extraction, module resolution and graph walking."""
