"""News collection, enrichment and scoring."""
