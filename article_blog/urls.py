"""
URL configuration for django-article-blog.

Include in your project urls.py:

    path('', include('article_blog.urls')),
"""
from django.urls import path

from . import views

app_name = "article_blog"

urlpatterns = [
    # Articles
    path("", views.ArticleListView.as_view(), name="article_index"),
    path("article/new/", views.ArticleCreateView.as_view(), name="article_new"),
    path("article/<int:pk>/", views.ArticleDetailView.as_view(), name="article_show"),

    # Filtered images
    path(
        "media/cache/resolve/<slug:filter_name>/<int:pk>/",
        views.DerivativeView.as_view(),
        name="derivative",
    ),
]
