"""
Persistence services used by the ingestion pipeline.
"""
