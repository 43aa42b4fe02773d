"""Geofenced attendance package.

Organized by feature modules (attendance, geo, office, leave, ...) with a thin
Flask controller layer over service/repository layers.
"""
