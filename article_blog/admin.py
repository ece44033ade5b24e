"""
Django admin configuration for article_blog.
"""
from django.contrib import admin, messages
from django.utils.html import format_html

from .exceptions import ImagingError
from .imaging import get_derivative_cache, get_filter_sets
from .models import Article, SourceImage
from .templatetags.imagine import imagine_filter


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    list_display = ["title", "has_image", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["title", "content"]
    raw_id_fields = ["image"]
    date_hierarchy = "created_at"
    readonly_fields = ["updated_at"]

    @admin.display(boolean=True, description="Image")
    def has_image(self, obj):
        return obj.image_id is not None


@admin.register(SourceImage)
class SourceImageAdmin(admin.ModelAdmin):
    list_display = [
        "thumbnail_preview",
        "original_filename",
        "mime_type",
        "human_file_size",
        "dimensions",
        "uploaded_by",
        "created_at",
    ]
    list_filter = ["mime_type", "created_at"]
    search_fields = ["original_filename", "content_hash"]
    readonly_fields = [
        "content_hash",
        "file_size",
        "width",
        "height",
        "mime_type",
        "created_at",
        "updated_at",
    ]
    actions = ["generate_derivatives"]

    @admin.display(description="Preview")
    def thumbnail_preview(self, obj):
        if not obj.file:
            return "-"
        if "thumbnail" in get_filter_sets():
            url = imagine_filter(obj, "thumbnail")
        else:
            url = obj.file.url
        return format_html(
            '<img src="{}" style="max-width: 50px; max-height: 50px;" />',
            url,
        )

    @admin.display(description="Size")
    def dimensions(self, obj):
        if obj.width and obj.height:
            return f"{obj.width}x{obj.height}"
        return "-"

    @admin.action(description="Generate derivatives for every filter set")
    def generate_derivatives(self, request, queryset):
        cache = get_derivative_cache()
        names = get_filter_sets().names()
        count = 0
        for source in queryset:
            for name in names:
                try:
                    cache.get_or_create(source, name)
                except ImagingError as exc:
                    self.message_user(request, f"{source} [{name}]: {exc}", level=messages.ERROR)
                    continue
                count += 1
        self.message_user(request, f"{count} derivatives ready.")
