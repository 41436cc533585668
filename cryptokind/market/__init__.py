"""Market-data access: upstream client, response cache and shaping helpers."""
