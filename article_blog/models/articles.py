"""
Article model for django-article-blog.
"""
from django.db import models
from django.urls import reverse
from django.utils import timezone


class ArticleQuerySet(models.QuerySet):
    def recent(self):
        """Articles ordered by creation date, newest first."""
        return self.order_by("-created_at", "-pk")


class Article(models.Model):
    """
    Blog article with an optional header image.
    """

    title = models.CharField(max_length=255)
    content = models.TextField(blank=True)
    image = models.ForeignKey(
        "article_blog.SourceImage",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="articles",
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ArticleQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("article_blog:article_show", kwargs={"pk": self.pk})

    @property
    def preview(self):
        """Return truncated content for list display."""
        if len(self.content) > 280:
            return self.content[:280] + "..."
        return self.content
