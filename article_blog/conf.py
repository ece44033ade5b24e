"""
Configuration settings for django-article-blog.

Override these in your Django settings.py:

    ARTICLE_BLOG = {
        'ARTICLES_PER_PAGE': 20,
        'MAX_UPLOAD_SIZE_MB': 10,
        'FILTER_SETS': {
            'thumbnail': {
                'quality': 75,
                'steps': [
                    {'primitive': 'thumbnail', 'params': {'size': [200, 200]}},
                ],
            },
        },
        ...
    }

Filter sets are loaded once at startup. Each step names a primitive from
article_blog.imaging.primitives.Primitive and the keyword params it takes.
"""
from pathlib import Path

from django.conf import settings

DEFAULTS = {
    # Articles
    "ARTICLES_PER_PAGE": 10,

    # Uploads
    "UPLOAD_PATH": "articles/images/%Y/%m/",
    "MAX_UPLOAD_SIZE_MB": 5,
    "ALLOWED_IMAGE_TYPES": ["image/jpeg", "image/png", "image/gif", "image/webp"],

    # Derivative cache, defaults to MEDIA_ROOT/cache and MEDIA_URL + "cache/"
    "CACHE_ROOT": None,
    "CACHE_URL": None,

    # Filter sets
    "DEFAULT_QUALITY": 85,
    "FILTER_SETS": {
        "thumbnail": {
            "quality": 75,
            "steps": [
                {"primitive": "thumbnail", "params": {"size": [200, 200], "mode": "outbound"}},
            ],
        },
        "article_card": {
            "quality": 80,
            "steps": [
                {"primitive": "scale", "params": {"dim": [600, 400]}},
                {"primitive": "strip_metadata", "params": {}},
            ],
        },
        "article_header": {
            "quality": 82,
            "format": "webp",
            "steps": [
                {"primitive": "scale", "params": {"dim": [1200, 600]}},
                {"primitive": "strip_metadata", "params": {}},
                {"primitive": "interlace", "params": {"mode": "line"}},
            ],
        },
    },
}


class ArticleBlogSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from article_blog.conf import article_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid article_blog setting: {name}")

        user_settings = getattr(settings, "ARTICLE_BLOG", {})
        return user_settings.get(name, DEFAULTS[name])

    @property
    def CACHE_ROOT(self):
        """Return the derivative cache directory as a Path."""
        user_settings = getattr(settings, "ARTICLE_BLOG", {})
        root = user_settings.get("CACHE_ROOT", DEFAULTS["CACHE_ROOT"])
        if root:
            return Path(root)
        return Path(settings.MEDIA_ROOT) / "cache"

    @property
    def CACHE_URL(self):
        """Return the URL prefix the cache root is served under."""
        user_settings = getattr(settings, "ARTICLE_BLOG", {})
        url = user_settings.get("CACHE_URL", DEFAULTS["CACHE_URL"])
        if url:
            return url
        return (settings.MEDIA_URL or "/") + "cache/"


article_settings = ArticleBlogSettings()
