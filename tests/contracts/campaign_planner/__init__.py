# Campaign Planner Service Contracts

"""
Campaign Planner Service Contract Module

This module contains:
- data_contract.py: re-exported service models and test data factories
"""
