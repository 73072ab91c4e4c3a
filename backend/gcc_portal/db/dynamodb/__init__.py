"""Shared DynamoDB utilities.

This package centralizes:
- boto3 client/resource configuration
- retry/backoff policy
- typed, expressive errors for consistent HTTP problem responses
- conditional writes and transactional helpers
- the single-table schema used by local tooling and tests

"""
