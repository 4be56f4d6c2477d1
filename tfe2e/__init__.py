"""Acceptance-test harness driving terraform manifests for the RHCS provider."""

__version__ = "0.1.0"
