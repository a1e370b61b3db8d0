"""Glue Data Catalog resource links."""

from .resource_links import ResourceLinkManager

__all__ = ["ResourceLinkManager"]
