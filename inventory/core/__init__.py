"""Core infrastructure: configuration, database, logging and telemetry."""
