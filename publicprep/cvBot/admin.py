from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("filename", "kind", "user", "uploaded_at")
    list_filter = ("kind",)
    search_fields = ("filename", "user__username", "user__email")
    readonly_fields = ("raw_text", "analysis", "uploaded_at")
