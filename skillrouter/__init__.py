"""
skill-router — classify a workspace, route to a capability module, keep it in sync.
"""

__version__ = "0.1.0"
