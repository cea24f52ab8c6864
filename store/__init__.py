"""
Store package: persistence contract, in-memory store, JSON loading, validation.
"""

from .base import PlannerStore
from .memory import InMemoryStore
from .loader import load_clients_json, parse_client
from .validators import ValidationResult, validate_client_record
from .requests import HistoryQuery, MetadataUpdate, SimulationRequest, parse_request

__all__ = [
    "PlannerStore",
    "InMemoryStore",
    "load_clients_json",
    "parse_client",
    "ValidationResult",
    "validate_client_record",
    "HistoryQuery",
    "MetadataUpdate",
    "SimulationRequest",
    "parse_request",
]
