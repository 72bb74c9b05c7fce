"""Compliance services for the audit trail."""
