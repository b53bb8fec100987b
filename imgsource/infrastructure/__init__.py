"""
Infrastructure layer - external service integrations.

- storage: S3-compatible object storage (boto3)
"""
