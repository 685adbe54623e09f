# apps/prompts/serializers.py
"""
Prompt template API serializers

Request serializers only check types; required fields and blank values are
enforced by the template store so that its error names the offending field.
"""
from rest_framework import serializers


def _text_field():
    return serializers.CharField(
        required=False, allow_blank=True, allow_null=True, trim_whitespace=False
    )


class TemplateWriteSerializer(serializers.Serializer):
    """
    Body of POST /api/templates/ and PUT /api/templates/<id>/

    Every field is optional here. Omitted fields are left out of
    validated_data so that an update keeps their current values.
    """

    name = _text_field()
    content = _text_field()
    department = _text_field()
    appCode = _text_field()
    instructions = _text_field()
    examples = serializers.ListField(
        child=serializers.JSONField(),
        required=False,
        allow_null=True,
        help_text="Items of {input, output}; userInput/question and "
        "expectedOutput/answer are accepted too",
    )


class DeleteRequestSerializer(serializers.Serializer):
    """Optional body of DELETE /api/templates/<id>/"""

    requestComment = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=""
    )


class ExampleSerializer(serializers.Serializer):
    input = serializers.CharField()
    output = serializers.CharField()


class TemplateSerializer(serializers.Serializer):
    """Shape of a template in responses"""

    id = serializers.CharField()
    name = serializers.CharField()
    department = serializers.CharField()
    appCode = serializers.CharField()
    contentPath = serializers.CharField()
    version = serializers.CharField()
    createdAt = serializers.CharField()
    updatedAt = serializers.CharField()
    createdBy = serializers.CharField()
    updatedBy = serializers.CharField()
    content = serializers.CharField(required=False)
    instructions = serializers.CharField(required=False)
    examples = ExampleSerializer(many=True, required=False)


class HistoryEntrySerializer(serializers.Serializer):
    commitId = serializers.CharField()
    version = serializers.CharField()
    message = serializers.CharField()
    userDisplayName = serializers.CharField()
    timestamp = serializers.CharField()
