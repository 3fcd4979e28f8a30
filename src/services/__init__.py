"""
Service functions for Lambda handler operations.

This package contains the adapters the pipeline talks to: MIME parsing, S3
email storage, SES confirmation delivery and confirmation templates.
"""

__all__ = ['email', 's3', 'ses', 'templates']
