"""
asgi.py -- ASGI entry point for Jobly.

api/main.py builds the complete application; this module only re-exports it
under the conventional name so servers can be pointed at one stable path.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
