"""edgecrm — multi-tenant CRM data layer for a constrained edge SQL engine."""

__version__ = "0.3.0"
