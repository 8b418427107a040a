"""CLI package for the account rotator

Provides the setup, switch and status commands; the entry point is
``cli.main.main``.
"""
