"""Pipeline stages: extraction, filtering, deduplication, enrichment and merge."""
