from rest_framework import serializers

from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    """
    Serializer for uploaded documents. The extracted text is only returned
    in full on the detail endpoint.
    """
    class Meta:
        model = Document
        fields = ['id', 'kind', 'filename', 'analysis', 'uploaded_at']
        read_only_fields = fields


class DocumentDetailSerializer(DocumentSerializer):
    class Meta(DocumentSerializer.Meta):
        fields = DocumentSerializer.Meta.fields + ['raw_text']
        read_only_fields = fields


class UploadDocumentSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=[kind for kind, _ in Document.KIND_CHOICES], default=Document.CV)
    file = serializers.FileField()


class AnalysisSerializer(serializers.Serializer):
    """Schema of the CV analysis returned by the AI provider."""
    key_highlights = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    competency_strengths = serializers.DictField(
        child=serializers.FloatField(min_value=0, max_value=100)
    )
    improvement_areas = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    experience_level = serializers.ChoiceField(choices=["entry", "mid", "senior"])
    public_sector_experience = serializers.BooleanField()
