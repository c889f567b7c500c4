"""Domain logic independent of HTTP and persistence."""
