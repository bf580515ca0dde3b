"""Snapshot diff and attribution.

Compares a "before" and an "after" dependency graph and explains every package
that only exists in "after": who pulls it in, and which features it carries.
"""
