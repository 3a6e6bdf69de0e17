"""Blended bank/own-funds loan planning: validation, simulation and reports."""
