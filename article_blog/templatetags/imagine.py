"""
Template filters for filtered images.

    {% load imagine %}
    <img src="{{ article.image|imagine_filter:'thumbnail' }}">
"""
import logging

from django import template
from django.urls import reverse

from ..exceptions import UnknownFilterSet
from ..imaging import get_derivative_cache

logger = logging.getLogger(__name__)

register = template.Library()


@register.filter
def imagine_filter(source, filter_name):
    """
    URL of source rendered through filter_name.

    Points straight at the cached file when it exists, otherwise at the
    resolve view that builds it. Falls back to the original file when no
    such filter set is configured.
    """
    if not source:
        return ""
    cache = get_derivative_cache()
    try:
        path = cache.path_for(source, filter_name)
    except UnknownFilterSet:
        logger.warning("Unknown filter set %r in template; using the original image", filter_name)
        return source.file_url or ""
    if path.exists():
        return cache.url_for(path)
    return reverse(
        "article_blog:derivative",
        kwargs={"filter_name": filter_name, "pk": source.pk},
    )
