"""
Faceboard - Image Ingestion Service

FastAPI service that ingests face images from ImageKit, enriches them with a
display name and a short biographical tag from Wikipedia, and upserts them
into the Supabase `faces` table used by the rating widget.
"""

__version__ = "0.1.0"
