"""
Tribute site for Gauta.

A FastAPI service that renders the site's pages and JSON API over a
Postgres data store, S3-compatible image storage and a Redis realtime feed.
"""
