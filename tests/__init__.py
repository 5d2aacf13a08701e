"""
Test suite for the liquidity pool core

Contains:
- tests/unit/          : Unit tests for individual modules and pool properties
"""
