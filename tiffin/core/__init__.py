"""
Core package: error taxonomy, logging helpers, service clock,
notification collaborator and HTTP middleware.
"""
