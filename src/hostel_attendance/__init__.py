"""Hostel Attendance package.

This package is organized by feature modules (persons, attendance, leaves,
batch, reconciliation, automark, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
