"""
Forms for django-article-blog.
"""
from django import forms

from .intake import validate_upload
from .models import Article, SourceImage


class ArticleForm(forms.ModelForm):
    """Article fields plus an optional image upload."""

    image_file = forms.FileField(
        required=False,
        label="Image",
        help_text="JPEG, PNG, GIF or WebP",
    )

    class Meta:
        model = Article
        fields = ["title", "content"]

    def clean_image_file(self):
        upload = self.cleaned_data.get("image_file")
        if upload:
            # ValidationFailed is a ValidationError, so it lands on the field
            validate_upload(upload)
        return upload

    def save(self, commit=True):
        article = super().save(commit=False)
        upload = self.cleaned_data.get("image_file")
        if upload:
            article.image, _ = SourceImage.get_or_create_from_file(upload)
        if commit:
            article.save()
        return article
