import uuid

from django.contrib.auth.models import User
from django.db import models


class Document(models.Model):
    CV = "cv"
    JOB_SPEC = "job_spec"
    KIND_CHOICES = [
        (CV, "CV"),
        (JOB_SPEC, "Job specification"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="documents")
    kind = models.CharField(max_length=20, choices=KIND_CHOICES)
    filename = models.CharField(max_length=255)
    raw_text = models.TextField()
    analysis = models.JSONField(null=True, blank=True)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-uploaded_at"]

    def __str__(self):
        return f"{self.filename} ({self.get_kind_display()})"
