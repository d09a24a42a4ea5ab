"""
Core business logic for the video catalog.

This module does not import FastAPI or boto3. Storage is reached only
through the StorageClient protocol, so the catalog logic can be tested
against the in-memory store.
"""
