"""Read-only reporting services package."""

from unmute.services.reporting.aggregation_view import AggregationView, InstitutionSummary

__all__ = ["AggregationView", "InstitutionSummary"]
