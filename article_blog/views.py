"""
Views for django-article-blog.
"""
import logging

from django.contrib.messages.views import SuccessMessageMixin
from django.http import Http404
from django.shortcuts import get_object_or_404, redirect
from django.urls import reverse_lazy
from django.views import View
from django.views.generic import CreateView, DetailView, ListView

from .conf import article_settings
from .exceptions import ImagingError, StorageWriteFailed, UnknownFilterSet
from .forms import ArticleForm
from .imaging import get_derivative_cache
from .models import Article, SourceImage

logger = logging.getLogger(__name__)


class ArticleListView(ListView):
    """List articles, newest first."""

    template_name = "article_blog/article_list.html"
    context_object_name = "articles"

    def get_queryset(self):
        return Article.objects.recent().select_related("image")

    def get_paginate_by(self, queryset):
        return article_settings.ARTICLES_PER_PAGE


class ArticleDetailView(DetailView):
    """Display a single article."""

    model = Article
    template_name = "article_blog/article_detail.html"
    context_object_name = "article"

    def get_queryset(self):
        return Article.objects.select_related("image")


class ArticleCreateView(SuccessMessageMixin, CreateView):
    """Show the new-article form and create the article on POST."""

    model = Article
    form_class = ArticleForm
    template_name = "article_blog/article_form.html"
    success_url = reverse_lazy("article_blog:article_index")
    success_message = "Article created successfully."


class DerivativeView(View):
    """
    Resolve a filtered image and redirect to its cached file.

    The first request builds the derivative; later ones find it in the cache.
    """

    def get(self, request, filter_name, pk):
        source = get_object_or_404(SourceImage, pk=pk)
        cache = get_derivative_cache()
        try:
            path = cache.get_or_create(source, filter_name)
        except UnknownFilterSet:
            raise Http404(f"Unknown filter set: {filter_name}")
        except StorageWriteFailed:
            raise
        except ImagingError as exc:
            # The source cannot go through this filter set (too small to crop, etc.)
            logger.warning("Cannot build derivative %s [%s]: %s", source.identity, filter_name, exc)
            raise Http404(f"Image {pk} cannot be rendered as {filter_name}")
        return redirect(cache.url_for(path))
