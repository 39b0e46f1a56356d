# lead_intake/services/__init__.py
"""
Intake services: normalization, validation, client identification,
rate limiting, the row store and the intake pipeline itself.
"""
