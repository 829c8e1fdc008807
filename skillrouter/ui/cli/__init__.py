"""
CLI command groups — thin wrappers over ``skillrouter.core.use_cases``.
"""
