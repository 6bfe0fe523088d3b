"""Domain layer: model, ports, ingest pipeline and reconciliation."""
