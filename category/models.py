from django.db import models

class Category(models.Model):
    name = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


def resolve_category(name):
    """Look a category up by name, creating it on first use."""
    name = (name or '').strip()
    if not name:
        return None
    category, _ = Category.objects.get_or_create(name=name)
    return category
