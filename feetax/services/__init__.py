"""Pipeline services: tax engine, validator, ingestion, aggregation and the state store."""
