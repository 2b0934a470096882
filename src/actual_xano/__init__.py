"""
Actual Budget → Xano HP expense export.

Finds cleared transactions in the HP (Home Practice) category group of an
Actual budget, submits each one exactly once to the Xano accounting API, and
tags it in Actual so it is never exported twice.
"""

__version__ = "0.1.0"
