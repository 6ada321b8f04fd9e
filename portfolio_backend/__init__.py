"""
Backend package for the bilingual portfolio.

This package provides a FastAPI application serving the public content API
and the admin write API, with a SQLAlchemy content store, upload storage
and admin session abstractions.
"""
