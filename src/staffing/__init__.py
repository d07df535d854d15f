"""
Staffing - optimistic mutation cache for the staffing dashboard.

Subpackages:
- staffing.core: errors, result envelope, logging, settings
- staffing.domain: opportunity and role models, parse functions, helpers
- staffing.cache: entity store, partition router, filters, mutation coordinator
- staffing.remote: remote collaborator protocol and implementations
- staffing.cli: Typer command line
"""

__version__ = "0.1.0"
