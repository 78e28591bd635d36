"""ETL job monitoring and ingredient data quality scoring."""

from nutrition_engine.services.monitoring.service import EtlMonitor


__all__ = ["EtlMonitor"]
