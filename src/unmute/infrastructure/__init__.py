"""
UNMUTE Infrastructure Layer

External integrations: record stores, database, notifications,
metrics and error tracking. Stores and sinks implement abstract
interfaces for testability.
"""
