"""Conformance checks for a live documentation site driven through Playwright."""
