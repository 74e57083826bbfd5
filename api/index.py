"""
Vercel serverless function entry point.

vercel.json rewrites every /api/* path here; the FastAPI app does the
routing.
"""
from mapshare.http_server import app

__all__ = ["app"]
