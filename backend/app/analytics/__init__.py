"""Page-view (UV) statistics stored in DuckDB."""
