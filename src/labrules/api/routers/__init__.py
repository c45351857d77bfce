"""API routers package.

Each router module owns one API domain (algorithms, workflows, executions,
catalog, scraper) and delegates to ``labrules.ops`` for business logic.
"""
