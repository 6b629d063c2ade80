"""Shared domain models, exceptions and infrastructure."""
