"""
django-article-blog - Articles with images and on-demand image derivatives.

Features:
- Article create/list/show views
- Image uploads with content-hash naming and deduplication
- Declarative filter sets (scale, crop, rotate, thumbnail, ...)
- Derivative cache with per-key build locking and atomic writes
"""

__version__ = "0.1.0"
