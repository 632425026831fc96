"""GameMarks - API Package.

This package contains FastAPI routers and endpoint definitions.
"""
