"""Application services for chaptering and export."""
