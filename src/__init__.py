"""
Short Form Video API - upload videos to Google Cloud Storage and browse
them by listing their metadata sidecars.

This package contains the complete application:
- core: Framework-agnostic catalog logic
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
