"""Prospectus upload, retrieval and cleanup.

Uploaded prospectus PDFs live in a single temporary directory
(``<tempdir>/prospectus-uploads`` by default) as ``prospectus-<uuid>.pdf``.
There is no metadata index: the file name carries the ID and the file's
modification time is its upload time.

Files older than the retention window (24 hours) are refused by the
download route and removed by the cleanup route.
"""
