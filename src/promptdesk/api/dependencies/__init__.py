"""
FastAPI dependencies for request processing.

Dependencies provide the request pipeline: session lookup, the tenant gate,
path and query validation, and access to the services kept in app state.
"""
