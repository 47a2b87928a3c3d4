"""Request parameters and SQL clause construction."""
