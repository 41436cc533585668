"""Activity logging: best-effort request audit trail in PostgreSQL."""
