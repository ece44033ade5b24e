"""
Signal handlers for django-article-blog.
"""
import logging

from django.core.signals import setting_changed
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .imaging.cache import get_derivative_cache
from .imaging.filters import get_filter_sets
from .models import SourceImage

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=SourceImage)
def delete_source_image_files(sender, instance, **kwargs):
    """Remove the stored file and its current derivatives."""
    if not instance.file:
        return
    get_derivative_cache().remove(instance)
    instance.file.storage.delete(instance.file.name)
    logger.info("Deleted source image file %s", instance.file.name)


@receiver(setting_changed)
def reset_imaging(setting, **kwargs):
    """Rebuild filter sets and the cache when their settings change."""
    if setting in ("ARTICLE_BLOG", "MEDIA_ROOT", "MEDIA_URL"):
        get_filter_sets.cache_clear()
        get_derivative_cache.cache_clear()
