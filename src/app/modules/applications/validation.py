"""
Section Validation

Pure validation of section payloads and uploaded files. Nothing here touches
the database or the blob store, so the same inputs always produce the same
error list.

Dispatch order for section data:
1. A schema registered for the section type is used exclusively.
2. File-only sections (photo, signature, final_documents) have no data rules.
3. The custom section is checked against the job's custom field definitions.
"""

import logging
import math
from collections.abc import Sequence
from typing import Any

from app.modules.applications.schemas import FieldError
from app.modules.applications.section_schemas import (
    FILE_ONLY_SECTIONS,
    get_schema,
    parse_date,
    validate_payload,
)
from app.modules.jobs.models import CustomFieldType, SectionType
from app.modules.jobs.schemas import CustomFieldDefinition, SectionRequirement

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
JPEG_MAGIC = b"\xff\xd8\xff"

KB = 1024
MB = 1024 * KB

# Fixed ceilings; other sections use the requirement's max_file_size_mb
PHOTO_MAX_BYTES = 200 * KB
SIGNATURE_MAX_BYTES = 50 * KB
FINAL_DOCUMENTS_MAX_BYTES = 3 * MB
DEFAULT_PDF_MAX_MB = 5

IMAGE_SECTIONS = frozenset({SectionType.PHOTO, SectionType.SIGNATURE})


# ============================================
# Section data
# ============================================


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = float(value if isinstance(value, int | float) else str(value))
    except (ValueError, OverflowError):
        return False
    return math.isfinite(number)


def validate_custom_fields(
    data: dict[str, Any],
    custom_fields: Sequence[CustomFieldDefinition],
) -> list[FieldError]:
    """Check custom section data against the job's custom field definitions."""
    errors: list[FieldError] = []

    for definition in custom_fields:
        name = definition.field_name
        value = data.get(name)

        if _is_blank(value):
            if definition.is_mandatory:
                errors.append(FieldError(field=name, message=f"{name} is required"))
            continue

        if definition.field_type == CustomFieldType.NUMBER and not _is_number(value):
            errors.append(FieldError(field=name, message="Must be a number"))
        elif definition.field_type == CustomFieldType.DATE and (
            not isinstance(value, str) or parse_date(value) is None
        ):
            errors.append(FieldError(field=name, message="Invalid date"))
        elif definition.field_type == CustomFieldType.DROPDOWN and value not in definition.options:
            errors.append(FieldError(field=name, message="Invalid option"))

    return errors


def validate_section(
    section_type: SectionType,
    data: dict[str, Any] | None,
    requirement: SectionRequirement | None = None,
    custom_fields: Sequence[CustomFieldDefinition] = (),
) -> list[FieldError]:
    """
    Validate one section's data payload.

    Args:
        section_type: Section being validated
        data: Submitted payload (None is treated as empty)
        requirement: The section's entry in the job snapshot; an optional
            section submitted with no data has nothing to validate
        custom_fields: Custom field definitions from the job snapshot

    Returns:
        Field errors, empty when the data is valid
    """
    data = data or {}

    if requirement is not None and not requirement.is_mandatory and not data:
        return []

    schema = get_schema(section_type)
    if schema is not None:
        return validate_payload(schema, data)

    if section_type in FILE_ONLY_SECTIONS:
        return []

    if section_type == SectionType.CUSTOM:
        return validate_custom_fields(data, custom_fields)

    return []


# ============================================
# Uploaded files
# ============================================


def is_pdf(content: bytes) -> bool:
    return content[:4] == PDF_MAGIC


def is_jpeg(content: bytes) -> bool:
    return content[:3] == JPEG_MAGIC


def max_upload_bytes(section_type: SectionType, requirement: SectionRequirement | None) -> int:
    """Size ceiling for a section's upload."""
    if section_type == SectionType.PHOTO:
        return PHOTO_MAX_BYTES
    if section_type == SectionType.SIGNATURE:
        return SIGNATURE_MAX_BYTES
    if section_type == SectionType.FINAL_DOCUMENTS:
        return FINAL_DOCUMENTS_MAX_BYTES
    max_mb = (requirement.max_file_size_mb if requirement else None) or DEFAULT_PDF_MAX_MB
    return max_mb * MB


def _format_size(size: int) -> str:
    if size % MB == 0:
        return f"{size // MB}MB"
    return f"{size // KB}KB"


def validate_upload(
    section_type: SectionType,
    content: bytes,
    requirement: SectionRequirement | None = None,
) -> list[FieldError]:
    """
    Check an uploaded file's real type (magic number) and size.

    The client-declared content type is never trusted. Photos and signatures
    must be JPEG images; every other section takes a PDF.
    """
    errors: list[FieldError] = []

    if not content:
        return [FieldError(field="file", message="Uploaded file is empty")]

    if section_type in IMAGE_SECTIONS:
        if not is_jpeg(content):
            errors.append(FieldError(field="file", message="Only JPEG images are allowed"))
    elif not is_pdf(content):
        errors.append(
            FieldError(
                field="file",
                message="Invalid PDF file. File content does not match PDF format",
            )
        )

    limit = max_upload_bytes(section_type, requirement)
    if len(content) > limit:
        errors.append(
            FieldError(field="file", message=f"File size must not exceed {_format_size(limit)}")
        )

    return errors


def content_type_for(section_type: SectionType) -> str:
    return "image/jpeg" if section_type in IMAGE_SECTIONS else "application/pdf"


async def scan_for_malware(content: bytes) -> bool:
    """
    Malware scan hook.

    Always reports the file as clean; no scanner is wired in.
    """
    logger.debug(f"Malware scan skipped for {len(content)} byte upload")
    return True
