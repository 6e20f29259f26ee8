"""Pure computation engine: metrics, records, progress, goals and reports."""
