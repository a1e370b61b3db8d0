"""Deployment verification."""

from .deployment import DeploymentVerifier, VerificationSummary

__all__ = ["DeploymentVerifier", "VerificationSummary"]
