"""
HTTP layer.

Every project route runs the same pipeline: identity resolver, authorization
gate, path validator, service call and response mapping.
"""
