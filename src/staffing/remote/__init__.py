"""Staffing remote — the collaborator contract and its two implementations.

Manifesto:
    The mutation coordinator only needs "call the server, get the
    authoritative entity back or an exception". This subpackage keeps that
    contract in one protocol with an in-memory mock for tests and demos and
    an httpx adapter for the dashboard REST API.

Tags:
    staffing-cache, remote, protocol, httpx, mock
"""

from staffing.remote.memory import InMemoryOpportunityResource
from staffing.remote.protocol import OpportunityResource
from staffing.remote.rest import HttpOpportunityResource

__all__ = [
    "OpportunityResource",
    "InMemoryOpportunityResource",
    "HttpOpportunityResource",
]
