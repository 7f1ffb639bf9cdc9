"""
WealthWise - Source Package

A personal net-worth tracker and savings-goal planner.

DESIGN PRINCIPLES:
1. Calculations are pure and reproducible
2. Storage is injected, never reached for globally
3. AI advice is optional - the rule engine always has an answer
4. Corrupt or missing data degrades to an empty ledger, never a crash
5. Every save is auditable
"""

__version__ = "1.0.0"
__author__ = "WealthWise Team"
