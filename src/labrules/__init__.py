"""
labrules - Laboratory result validation algorithms.

Define validation algorithms (named sets of parameter rules plus a terminal
action), chain them into workflows, persist both in a document store and
run them against patient results.

Packages:
- labrules.core: data model, catalog, rule interpreter, store, execution
- labrules.ops: transport-agnostic operations
- labrules.api: FastAPI service
- labrules.cli: typer command line
- labrules.client: httpx REST client
"""

__version__ = "1.0.0"
