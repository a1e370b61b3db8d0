"""
Cross-account Amazon Connect analytics tooling.

Automates the consumer side of a Lake Formation data share:
- Resource links to the producer's Glue tables
- Lake Formation grants for the export Lambda role
- Table metadata export and deployment verification
"""

__version__ = "0.1.0"
