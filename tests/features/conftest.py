"""Shared configuration for BDD feature tests.

Step modules live in ``tests/features/steps`` and reference their feature
files relative to that directory.
"""
