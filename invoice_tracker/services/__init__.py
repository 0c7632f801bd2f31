"""Invoice lifecycle, validation, reconciliation and listing services."""
