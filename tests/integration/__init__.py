"""Integration tests for the Notion mirror.

These tests run complete sync passes: the reconciliation engine, handlers,
renderer and asset manager work together against an in-memory Notion API
(tests/fixtures/fake_notion.py) and a real vault in a temp directory.

Test Coverage:
- Incremental passes: first sync, idempotent re-sync, changed and restored pages
- Moves: renamed pages and re-parented subtrees, folder cleanup
- Deletions: removed, excluded and unreachable pages, auto-delete toggle
- Assets: download, deduplication, re-download and orphan cleanup
- Failure handling: aborted fetch, stub documents, per-item write failures

No network access or Notion credentials are required.
"""
