"""
Test suite for the journal ingestion pipeline.

Covers the change queue, directory watcher, deduplication, companion
merging, transactional writer, tick scheduler, backfill scanner and the
monitor facade.
"""
