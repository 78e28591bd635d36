"""Domain services for conversion, nutrition calculation and ingestion."""
