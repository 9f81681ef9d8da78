"""
Request scoped dependencies: authentication and permission checks.
"""
