"""
fleetgauge configuration.

models.py holds the pydantic schema, loader.py reads and merges the
configuration directory, settings.py reads the process environment.
"""
