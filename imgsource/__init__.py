"""
imgsource - object storage image source for an image-serving proxy.

This package contains the complete application:
- core: Framework-agnostic image sources and the source registry
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Service settings and the bucket configuration file loader
"""

__version__ = "0.1.0"
