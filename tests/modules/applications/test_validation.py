"""
Unit tests for section data and file validation.
"""

from app.modules.applications.validation import (
    FINAL_DOCUMENTS_MAX_BYTES,
    PHOTO_MAX_BYTES,
    SIGNATURE_MAX_BYTES,
    content_type_for,
    max_upload_bytes,
    validate_custom_fields,
    validate_section,
    validate_upload,
)
from app.modules.jobs.models import CustomFieldType, SectionType
from app.modules.jobs.schemas import CustomFieldDefinition, SectionRequirement

PDF = b"%PDF-1.4\n"
JPEG = b"\xff\xd8\xff\xe0"


def _field(name, field_type, mandatory=False, options=None):
    return CustomFieldDefinition(
        field_name=name,
        field_type=field_type,
        is_mandatory=mandatory,
        options=options or [],
    )


class TestValidateCustomFields:
    def test_missing_mandatory(self):
        errors = validate_custom_fields({}, [_field("gate_score", CustomFieldType.NUMBER, True)])
        assert [(e.field, e.message) for e in errors] == [("gate_score", "gate_score is required")]

    def test_optional_blank_is_fine(self):
        assert validate_custom_fields({"note": ""}, [_field("note", CustomFieldType.TEXT)]) == []

    def test_number(self):
        fields = [_field("score", CustomFieldType.NUMBER)]
        assert validate_custom_fields({"score": "72.5"}, fields) == []
        assert validate_custom_fields({"score": 72}, fields) == []
        errors = validate_custom_fields({"score": "high"}, fields)
        assert errors[0].message == "Must be a number"

    def test_non_finite_is_not_a_number(self):
        fields = [_field("score", CustomFieldType.NUMBER)]
        for value in ("nan", "inf", "-Infinity", float("nan")):
            errors = validate_custom_fields({"score": value}, fields)
            assert errors[0].message == "Must be a number"

    def test_boolean_is_not_a_number(self):
        errors = validate_custom_fields({"score": True}, [_field("score", CustomFieldType.NUMBER)])
        assert errors[0].message == "Must be a number"

    def test_date(self):
        fields = [_field("joined", CustomFieldType.DATE)]
        assert validate_custom_fields({"joined": "2024-01-15"}, fields) == []
        assert validate_custom_fields({"joined": "15/01/2024"}, fields)[0].message == "Invalid date"

    def test_dropdown(self):
        fields = [_field("shift", CustomFieldType.DROPDOWN, options=["morning", "evening"])]
        assert validate_custom_fields({"shift": "morning"}, fields) == []
        assert validate_custom_fields({"shift": "night"}, fields)[0].message == "Invalid option"

    def test_all_errors_reported(self):
        fields = [
            _field("a", CustomFieldType.TEXT, True),
            _field("b", CustomFieldType.NUMBER, True),
        ]
        assert [e.field for e in validate_custom_fields({}, fields)] == ["a", "b"]


class TestValidateSection:
    def test_schema_section(self, personal_data):
        assert validate_section(SectionType.PERSONAL, personal_data) == []
        personal_data["mobile"] = "555"
        assert [e.field for e in validate_section(SectionType.PERSONAL, personal_data)] == [
            "mobile"
        ]

    def test_file_only_section_has_no_data_rules(self):
        assert validate_section(SectionType.PHOTO, {"anything": 1}) == []

    def test_custom_section_uses_definitions(self):
        fields = [_field("gate_score", CustomFieldType.NUMBER, True)]
        errors = validate_section(SectionType.CUSTOM, {}, custom_fields=fields)
        assert errors[0].field == "gate_score"

    def test_optional_section_with_no_data_passes(self):
        requirement = SectionRequirement(
            section_type=SectionType.PUBLICATIONS_JOURNAL, is_mandatory=False
        )
        assert validate_section(SectionType.PUBLICATIONS_JOURNAL, {}, requirement) == []

    def test_optional_section_with_data_is_validated(self):
        requirement = SectionRequirement(
            section_type=SectionType.PUBLICATIONS_JOURNAL, is_mandatory=False
        )
        errors = validate_section(SectionType.PUBLICATIONS_JOURNAL, {"items": []}, requirement)
        assert errors

    def test_same_input_same_errors(self, personal_data):
        personal_data["dob"] = "bad"
        first = validate_section(SectionType.PERSONAL, personal_data)
        second = validate_section(SectionType.PERSONAL, personal_data)
        assert first == second


class TestValidateUpload:
    def test_valid_pdf(self):
        requirement = SectionRequirement(
            section_type=SectionType.EDUCATION, requires_file=True, file_label="Certificates"
        )
        assert validate_upload(SectionType.EDUCATION, PDF + b"x" * 100, requirement) == []

    def test_declared_type_is_ignored(self):
        errors = validate_upload(SectionType.EDUCATION, b"PK\x03\x04 zip file")
        assert errors[0].message == "Invalid PDF file. File content does not match PDF format"

    def test_empty_file(self):
        assert validate_upload(SectionType.EDUCATION, b"")[0].message == "Uploaded file is empty"

    def test_pdf_size_uses_requirement(self):
        requirement = SectionRequirement(
            section_type=SectionType.EDUCATION,
            requires_file=True,
            file_label="Certificates",
            max_file_size_mb=1,
        )
        content = PDF + b"x" * (1024 * 1024)
        errors = validate_upload(SectionType.EDUCATION, content, requirement)
        assert errors[0].message == "File size must not exceed 1MB"

    def test_default_pdf_limit(self):
        assert max_upload_bytes(SectionType.EXPERIENCE, None) == 5 * 1024 * 1024

    def test_photo_must_be_jpeg(self):
        errors = validate_upload(SectionType.PHOTO, PDF)
        assert errors[0].message == "Only JPEG images are allowed"
        assert validate_upload(SectionType.PHOTO, JPEG + b"x" * 100) == []

    def test_photo_and_signature_limits(self):
        assert max_upload_bytes(SectionType.PHOTO, None) == PHOTO_MAX_BYTES
        assert max_upload_bytes(SectionType.SIGNATURE, None) == SIGNATURE_MAX_BYTES
        errors = validate_upload(SectionType.SIGNATURE, JPEG + b"x" * SIGNATURE_MAX_BYTES)
        assert errors[0].message == "File size must not exceed 50KB"

    def test_final_documents_limit(self):
        assert max_upload_bytes(SectionType.FINAL_DOCUMENTS, None) == FINAL_DOCUMENTS_MAX_BYTES
        content = PDF + b"x" * FINAL_DOCUMENTS_MAX_BYTES
        errors = validate_upload(SectionType.FINAL_DOCUMENTS, content)
        assert errors[0].message == "File size must not exceed 3MB"

    def test_type_and_size_errors_together(self):
        errors = validate_upload(SectionType.PHOTO, b"GIF89a" + b"x" * PHOTO_MAX_BYTES)
        assert len(errors) == 2

    def test_content_type(self):
        assert content_type_for(SectionType.PHOTO) == "image/jpeg"
        assert content_type_for(SectionType.EDUCATION) == "application/pdf"
