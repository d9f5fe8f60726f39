"""Labor attendance package.

This package is organized by feature modules (geofence, biometrics, attendance,
access_requests, closings, ...) with a thin Flask controller layer and
service/repository layers underneath.
"""
