"""Domain layer: pure scraping, reconciliation and diagnostics logic."""
