"""Secret shapes, store interface and reconciliation."""
