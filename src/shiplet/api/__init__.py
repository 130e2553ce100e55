"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /api/signup, /api/businesses, /api/providers - Signup submission and listing
- /api/placeholder/{width}/{height} - SVG placeholder images
- /health, / - Health check and liveness
"""
from .healthz import router as healthz_router
from .placeholder import router as placeholder_router
from .signup import router as signup_router

__all__ = ["healthz_router", "placeholder_router", "signup_router"]
