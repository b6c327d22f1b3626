"""
API route handlers for different endpoint groups.

Each router handles one resource type (projects, datasets, prompts,
evaluations) plus
the unauthenticated health probes.
"""
