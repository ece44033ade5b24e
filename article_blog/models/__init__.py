"""
Models for django-article-blog.

All models are importable from article_blog.models:

    from article_blog.models import Article, SourceImage
"""
from .articles import Article
from .media import SourceImage

__all__ = [
    "Article",
    "SourceImage",
]
