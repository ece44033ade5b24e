"""
URL configuration for django-article-blog tests.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("article_blog.urls")),
]
