"""
Core image source logic.

This package is framework-agnostic - it doesn't import FastAPI or boto3.
Sources see requests through a small protocol and reach object storage
through an injected downloader, so they can be tested in isolation.
"""
