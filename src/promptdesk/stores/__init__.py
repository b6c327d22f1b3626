"""
Persistence layer.

Store interfaces live in base; SQLAlchemy and in-memory implementations in
sql and memory.
"""
