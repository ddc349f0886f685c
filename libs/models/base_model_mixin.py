from django.db import models


class BaseModel(models.Model):
    """Abstract base with creation/update timestamps, ordered oldest first."""

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["created_at"]
