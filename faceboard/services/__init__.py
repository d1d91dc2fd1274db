"""
Faceboard - Ingestion Services

Name normalization, Wikipedia enrichment, webhook verification, ImageKit
listing and the faces table upsert, composed by services.pipeline.
"""
