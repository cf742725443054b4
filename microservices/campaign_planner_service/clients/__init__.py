"""
Campaign Planner Clients

Clients for calling other microservices.
"""

from .reference_data_client import ReferenceDataClient

__all__ = [
    "ReferenceDataClient",
]
