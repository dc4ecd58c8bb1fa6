"""
Shared library code for the What's On Where backend.

This package holds code that is reused across:
- the FastAPI app in `api/`
- operator scripts in `scripts/`

App entrypoints (FastAPI routers, CLI scripts) should live outside this package and
import from `wow_backend` rather than the other way around.
"""
