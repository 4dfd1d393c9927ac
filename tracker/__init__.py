"""Game session stat tracker: screenshot analysis and session ingestion."""
