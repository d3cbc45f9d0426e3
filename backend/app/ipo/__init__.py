"""IPO stock listings stored in DuckDB."""
