"""CanLII REST API client and response models."""

from canlii_mcp.canlii.client import CanLIIClient, CanLIIError, DATE_FILTERS, build_date_params

__all__ = ["CanLIIClient", "CanLIIError", "DATE_FILTERS", "build_date_params"]
