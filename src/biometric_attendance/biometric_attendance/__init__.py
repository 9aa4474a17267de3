"""Biometric attendance package.

Feature modules (biometrics, attendance, retention, ...) each hold their
domain model, repository interface with its MySQL implementation, a service
and a thin Flask controller.
"""
