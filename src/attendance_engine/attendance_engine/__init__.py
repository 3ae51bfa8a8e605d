"""Attendance reconciliation and metrics engine.

Turns raw biometric punches into one attendance record per employee per day,
corrects missing punch-outs and aggregates daily attendance metrics. Organized
by feature modules (punches, attendance, resolver, metrics, ...) with a thin
Flask controller layer over service/repository layers.
"""
