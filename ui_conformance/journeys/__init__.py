"""
Live scenarios against the configured site.

Each scenario starts from a fresh browser context and a fresh page load, so
nothing (theme preference, saved searches, focus) carries over between them.

Scenarios:
    structure       - header and footer landmarks
    theme toggle    - dark class appears after one click, and only then
    keyboard        - nine navigation targets receive focus in order
    search          - query, select, save, reopen, retrieve, verify

Enable with UI_LIVE=1.
"""
