"""HTTP interface for triggering migrations."""
