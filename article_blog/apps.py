"""Django app configuration for article_blog."""
from django.apps import AppConfig


class ArticleBlogConfig(AppConfig):
    """Configuration for the article blog app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "article_blog"
    verbose_name = "Article Blog"

    def ready(self):
        """Connect signals and load the filter sets."""
        from . import signals  # noqa: F401

        # Fail at startup on a broken FILTER_SETS setting
        from .imaging.filters import get_filter_sets
        get_filter_sets()
