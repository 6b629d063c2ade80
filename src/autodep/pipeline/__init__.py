"""Cycle pipeline: walk -> reconcile -> install."""
