"""Report model for import scan results."""

from .model import ImportReport, MemberDiagnostic

__all__ = ["ImportReport", "MemberDiagnostic"]
