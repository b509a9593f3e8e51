"""
Section Schema Registry

One Pydantic model per structured section type. `photo`, `signature` and
`final_documents` carry only a file and have no data schema; `custom` is
validated against the job's custom field definitions instead.

The registry is checked at import time: every SectionType must be either
schema-backed, file-only, or custom.
"""

import enum
import re
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from app.modules.applications.schemas import FieldError
from app.modules.jobs.models import SectionType

MIN_YEAR = 1950
MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^\d{6}$")
AADHAR_RE = re.compile(r"^\d{12}$")
YEAR_RE = re.compile(r"^\d{4}$")

INDIAN_STATES = frozenset(
    {
        "Andhra Pradesh",
        "Arunachal Pradesh",
        "Assam",
        "Bihar",
        "Chhattisgarh",
        "Goa",
        "Gujarat",
        "Haryana",
        "Himachal Pradesh",
        "Jharkhand",
        "Karnataka",
        "Kerala",
        "Madhya Pradesh",
        "Maharashtra",
        "Manipur",
        "Meghalaya",
        "Mizoram",
        "Nagaland",
        "Odisha",
        "Punjab",
        "Rajasthan",
        "Sikkim",
        "Tamil Nadu",
        "Telangana",
        "Tripura",
        "Uttar Pradesh",
        "Uttarakhand",
        "West Bengal",
        "Andaman and Nicobar Islands",
        "Chandigarh",
        "Dadra and Nagar Haveli and Daman and Diu",
        "Delhi",
        "Jammu and Kashmir",
        "Ladakh",
        "Lakshadweep",
        "Puducherry",
    }
)


# ============================================
# Enumerations
# ============================================


class Category(str, enum.Enum):
    GENERAL = "GEN"
    EWS = "EWS"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class MaritalStatus(str, enum.Enum):
    SINGLE = "single"
    MARRIED = "married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class TopInstituteDegree(str, enum.Enum):
    """Qualifications earned at a top-ranked institute."""

    UG = "ug"
    PG = "pg"
    PHD = "phd"
    NONE = "none"


class NirfRankRange(str, enum.Enum):
    TOP_10 = "1-10"
    TOP_25 = "11-25"
    TOP_50 = "26-50"
    TOP_100 = "51-100"
    TOP_200 = "101-200"


class ExamType(str, enum.Enum):
    SECONDARY = "secondary"
    HIGHER_SECONDARY = "higher_secondary"
    DIPLOMA = "diploma"
    GRADUATION = "graduation"
    POST_GRADUATION = "post_graduation"
    MPHIL = "mphil"
    PHD = "phd"
    POST_DOCTORAL = "post_doctoral"


class ExperienceType(str, enum.Enum):
    TEACHING = "teaching"
    RESEARCH = "research"
    INDUSTRY = "industry"
    ADMINISTRATIVE = "administrative"


class AppointmentType(str, enum.Enum):
    REGULAR = "regular"
    CONTRACT = "contract"
    AD_HOC = "ad_hoc"
    GUEST = "guest"
    TEMPORARY = "temporary"


class OrganizationType(str, enum.Enum):
    CENTRAL_GOVERNMENT = "central_government"
    STATE_GOVERNMENT = "state_government"
    PUBLIC_SECTOR = "public_sector"
    AUTONOMOUS = "autonomous"
    PRIVATE = "private"


class JournalType(str, enum.Enum):
    SCI_SCOPUS = "sci_scopus"
    UGC_CARE = "ugc_care"
    OTHER = "other"


class ConferenceType(str, enum.Enum):
    INTERNATIONAL = "international"
    NATIONAL = "national"


class PhdStatus(str, enum.Enum):
    AWARDED = "awarded"
    THESIS_SUBMITTED = "thesis_submitted"
    ONGOING = "ongoing"


class PatentStatus(str, enum.Enum):
    GRANTED = "granted"
    PUBLISHED = "published"
    FILED = "filed"


class BookType(str, enum.Enum):
    TEXT_BOOK = "text_book"
    REFERENCE_BOOK = "reference_book"
    EDITED_BOOK = "edited_book"
    BOOK_CHAPTER = "book_chapter"


class ProjectStatus(str, enum.Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"


class SubjectLevel(str, enum.Enum):
    UG = "ug"
    PG = "pg"
    PHD = "phd"


# ============================================
# Field types
# ============================================


def parse_date(value: str | date) -> date | None:
    """Parse an ISO date or datetime string; None if it is not a valid date."""
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        return None


def _check_date(value: str) -> str:
    if parse_date(value) is None:
        raise ValueError("Invalid date")
    return value


def _check_year(value: str) -> str:
    if not YEAR_RE.match(value):
        raise ValueError("Must be a 4-digit year")
    max_year = date.today().year + 5
    if not MIN_YEAR <= int(value) <= max_year:
        raise ValueError(f"Year must be between {MIN_YEAR} and {max_year}")
    return value


def _matches(pattern: re.Pattern, message: str) -> Callable[[str], str]:
    def check(value: str) -> str:
        if not pattern.match(value):
            raise ValueError(message)
        return value

    return check


def _one_of(allowed: Iterable[str], message: str) -> Callable[[str], str]:
    allowed = frozenset(allowed)

    def check(value: str) -> str:
        if value not in allowed:
            raise ValueError(message)
        return value

    return check


def _blank_to_none(value: Any) -> Any:
    return None if value == "" else value


DateString = Annotated[str, AfterValidator(_check_date)]
YearString = Annotated[str, AfterValidator(_check_year)]
MobileNumber = Annotated[
    str,
    AfterValidator(_matches(MOBILE_RE, "Invalid mobile number (10 digits, starting with 6-9)")),
]
Pincode = Annotated[str, AfterValidator(_matches(PINCODE_RE, "Pincode must be 6 digits"))]
IndianState = Annotated[str, AfterValidator(_one_of(INDIAN_STATES, "Select a valid state"))]
NonNegativeInt = Annotated[int, Field(ge=0)]

OptionalDate = Annotated[DateString | None, BeforeValidator(_blank_to_none)]
OptionalYear = Annotated[YearString | None, BeforeValidator(_blank_to_none)]
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]


class SectionModel(BaseModel):
    """Base for section payloads: trims strings, ignores unknown keys."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


EntryT = TypeVar("EntryT", bound=BaseModel)


class ListSection(SectionModel, Generic[EntryT]):
    """A section made of a non-empty ordered list of entries."""

    items: list[EntryT] = Field(..., min_length=1)


# ============================================
# Personal
# ============================================


class PersonalSection(SectionModel):
    post_applied_for: str = Field(..., min_length=1)
    department_discipline: str = Field(..., min_length=1)
    category: Category
    disability: bool
    name: str = Field(..., min_length=2)
    dob: DateString
    father_name: str = Field(..., min_length=2)
    nationality: str = Field(..., min_length=2)
    gender: Gender
    marital_status: MaritalStatus
    aadhar: Annotated[
        str | None,
        BeforeValidator(_blank_to_none),
        AfterValidator(
            lambda v: v if v is None else _matches(AADHAR_RE, "Aadhar must be 12 digits")(v)
        ),
    ] = None

    # Correspondence address
    corr_address: str = Field(..., min_length=5)
    corr_city: str = Field(..., min_length=1)
    corr_district: str = Field(..., min_length=1)
    corr_state: IndianState
    corr_pincode: Pincode
    mobile: MobileNumber
    phone: OptionalText = None

    # Permanent address
    same_as_correspondence: bool | None = None
    perm_address: str = Field(..., min_length=5)
    perm_city: str = Field(..., min_length=1)
    perm_district: str = Field(..., min_length=1)
    perm_state: IndianState
    perm_pincode: Pincode
    perm_phone: OptionalText = None

    # Research profile
    specialization: list[Annotated[str, Field(min_length=1)]] = Field(
        ..., min_length=1, max_length=2
    )
    phd_title: str = Field(..., min_length=5)
    phd_university: str = Field(..., min_length=2)
    phd_date: DateString
    degree_from_top_institute: list[TopInstituteDegree] = Field(..., min_length=1)

    scopus_id: OptionalText = None
    last_promotion_date: OptionalDate = None
    last_promotion_designation: OptionalText = None
    last_promotion_pay_scale: OptionalText = None
    last_promotion_department: OptionalText = None


# ============================================
# Education and experience
# ============================================


class NirfRanking(SectionModel):
    rank: Annotated[NirfRankRange | None, BeforeValidator(_blank_to_none)] = None
    ranking_year: OptionalYear = None


class EducationEntry(SectionModel):
    exam_passed: ExamType
    discipline: str = Field(..., min_length=1)
    board_university: str = Field(..., min_length=2)
    marks: str = Field(..., min_length=1)
    class_division: str = Field(..., min_length=1)
    year_of_passing: YearString
    nirf_ranking: NirfRanking | None = None


class ExperienceEntry(SectionModel):
    experience_type: list[ExperienceType] = Field(..., min_length=1)
    employer_name_address: str = Field(..., min_length=5)
    is_present_employer: bool = False
    designation: str = Field(..., min_length=2)
    appointment_type: AppointmentType
    pay_scale: str = Field(..., min_length=1)
    organization_type: OrganizationType
    from_date: DateString
    to_date: OptionalDate = Field(None, validate_default=True)

    @field_validator("to_date")
    @classmethod
    def validate_to_date(cls, value: str | None, info: ValidationInfo) -> str | None:
        if not value:
            if not info.data.get("is_present_employer", False):
                raise ValueError("To date is required unless this is your present employer")
            return value

        from_date = info.data.get("from_date")
        if from_date and parse_date(value) < parse_date(from_date):
            raise ValueError("To date must be on or after from date")
        return value


# ============================================
# Publications and research output
# ============================================


class JournalEntry(SectionModel):
    journal_type: JournalType
    paper_title: str = Field(..., min_length=5)
    authors: str = Field(..., min_length=2)
    is_first_author: bool
    co_author_count: NonNegativeInt
    journal_name: str = Field(..., min_length=2)
    is_paid_journal: bool
    volume: str = Field(..., min_length=1)
    year: YearString
    pages: str = Field(..., min_length=1)


class ConferenceEntry(SectionModel):
    conference_type: ConferenceType
    paper_title: str = Field(..., min_length=5)
    authors: str = Field(..., min_length=2)
    is_first_author: bool
    co_author_count: NonNegativeInt
    conference_name: str = Field(..., min_length=2)
    organizer: str = Field(..., min_length=2)
    year: YearString
    pages: str = Field(..., min_length=1)
    volume: OptionalText = None


class PhdSupervisionEntry(SectionModel):
    scholar_name: str = Field(..., min_length=2)
    research_topic: str = Field(..., min_length=5)
    university_institute: str = Field(..., min_length=2)
    supervisors: str = Field(..., min_length=2)
    is_first_supervisor: bool
    co_supervisor_count: NonNegativeInt
    year: YearString
    status: PhdStatus


class PatentEntry(SectionModel):
    patent_title: str = Field(..., min_length=5)
    inventors: str = Field(..., min_length=2)
    is_principal_inventor: bool
    co_inventor_count: NonNegativeInt
    year: YearString
    status: PatentStatus


class BookEntry(SectionModel):
    book_type: BookType
    title: str = Field(..., min_length=3)
    authors: str = Field(..., min_length=2)
    year: YearString
    publisher: str = Field(..., min_length=2)


class OrganizedProgramEntry(SectionModel):
    title: str = Field(..., min_length=3)
    from_date: DateString
    to_date: DateString
    sponsoring_agency: str = Field(..., min_length=2)

    @field_validator("to_date")
    @classmethod
    def validate_to_date(cls, value: str, info: ValidationInfo) -> str:
        from_date = info.data.get("from_date")
        if from_date and parse_date(value) < parse_date(from_date):
            raise ValueError("To date must be on or after from date")
        return value


# ============================================
# Projects and teaching
# ============================================


class SponsoredProjectEntry(SectionModel):
    sponsoring_agency: str = Field(..., min_length=2)
    title: str = Field(..., min_length=3)
    period: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    pi_co_pi: str = Field(..., min_length=2)
    is_principal_investigator: bool
    co_investigator_count: NonNegativeInt
    status: ProjectStatus


class ConsultancyProjectEntry(SectionModel):
    funding_agency: str = Field(..., min_length=2)
    title: str = Field(..., min_length=3)
    period: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    pi_co_pi: str = Field(..., min_length=2)
    status: ProjectStatus


class SubjectEntry(SectionModel):
    category: SubjectLevel
    subject_name: str = Field(..., min_length=2)


# ============================================
# Credit points, referees, other info, declaration
# ============================================


class ManualActivity(SectionModel):
    activity_id: int = Field(..., ge=5, le=22)
    description: str = Field(..., min_length=1)
    claimed_points: float = Field(..., ge=0)


class CreditPointsSection(SectionModel):
    manual_activities: list[ManualActivity] = Field(default_factory=list)
    total_credits_claimed: float = Field(..., ge=0)
    total_credits_allowed: float = Field(..., ge=0)


class RefereeEntry(SectionModel):
    name: str = Field(..., min_length=2)
    designation: str = Field(..., min_length=2)
    department_address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=1)
    pincode: Pincode
    phone: str = Field(..., min_length=5)
    official_email: EmailStr
    personal_email: EmailStr


class RefereesSection(SectionModel):
    items: list[RefereeEntry]

    @field_validator("items")
    @classmethod
    def validate_count(cls, value: list[RefereeEntry]) -> list[RefereeEntry]:
        if len(value) != 2:
            raise ValueError("Exactly 2 referees are required")
        return value


class OtherInfoSection(SectionModel):
    strength: OptionalText = None
    weakness: OptionalText = None
    vision_for_higher_ed: OptionalText = None
    top_three_priorities: OptionalText = None
    preferred_subjects: list[Annotated[str, Field(min_length=1)]] | None = Field(
        None, max_length=5
    )
    lab_innovations: list[Annotated[str, Field(min_length=1)]] | None = Field(None, max_length=2)
    other_info: OptionalText = None


def _acknowledged(message: str) -> AfterValidator:
    def check(value: bool) -> bool:
        if value is not True:
            raise ValueError(message)
        return value

    return AfterValidator(check)


class DeclarationSection(SectionModel):
    declare_info_true: Annotated[
        bool, _acknowledged("You must declare that the information provided is true")
    ]
    agree_to_terms: Annotated[bool, _acknowledged("You must agree to the terms and conditions")]
    photo_uploaded: Annotated[
        bool, _acknowledged("Please confirm that you have uploaded your photograph")
    ]
    details_verified: Annotated[
        bool, _acknowledged("You must verify all details before final submission")
    ]


# ============================================
# Registry
# ============================================

SECTION_SCHEMAS: dict[SectionType, type[SectionModel]] = {
    SectionType.PERSONAL: PersonalSection,
    SectionType.EDUCATION: ListSection[EducationEntry],
    SectionType.EXPERIENCE: ListSection[ExperienceEntry],
    SectionType.PUBLICATIONS_JOURNAL: ListSection[JournalEntry],
    SectionType.PUBLICATIONS_CONFERENCE: ListSection[ConferenceEntry],
    SectionType.PHD_SUPERVISION: ListSection[PhdSupervisionEntry],
    SectionType.PATENTS: ListSection[PatentEntry],
    SectionType.PUBLICATIONS_BOOKS: ListSection[BookEntry],
    SectionType.ORGANIZED_PROGRAMS: ListSection[OrganizedProgramEntry],
    SectionType.SPONSORED_PROJECTS: ListSection[SponsoredProjectEntry],
    SectionType.CONSULTANCY_PROJECTS: ListSection[ConsultancyProjectEntry],
    SectionType.SUBJECTS_TAUGHT: ListSection[SubjectEntry],
    SectionType.CREDIT_POINTS: CreditPointsSection,
    SectionType.REFEREES: RefereesSection,
    SectionType.OTHER_INFO: OtherInfoSection,
    SectionType.DECLARATION: DeclarationSection,
}

FILE_ONLY_SECTIONS: frozenset[SectionType] = frozenset(
    {SectionType.PHOTO, SectionType.SIGNATURE, SectionType.FINAL_DOCUMENTS}
)


def _check_registry() -> None:
    covered = set(SECTION_SCHEMAS) | FILE_ONLY_SECTIONS | {SectionType.CUSTOM}
    missing = set(SectionType) - covered
    if missing:
        raise RuntimeError(
            f"Section types without a validator: {sorted(s.value for s in missing)}"
        )
    overlap = set(SECTION_SCHEMAS) & FILE_ONLY_SECTIONS
    if overlap:
        raise RuntimeError(
            f"Section types both schema-backed and file-only: {sorted(s.value for s in overlap)}"
        )


_check_registry()


def get_schema(section_type: SectionType) -> type[SectionModel] | None:
    """Structural validator for a section type, or None for file-only / custom."""
    return SECTION_SCHEMAS.get(section_type)


def _format_loc(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "data"


# Display names where the field name does not read well on its own
FIELD_LABELS = {
    "name": "Full name",
    "father_name": "Father's name",
    "corr_address": "Correspondence address",
    "perm_address": "Permanent address",
    "corr_city": "Correspondence city",
    "corr_district": "Correspondence district",
    "perm_city": "Permanent city",
    "perm_district": "Permanent district",
    "phd_title": "PhD thesis title",
    "phd_university": "PhD university/institution",
    "board_university": "Board/university/institute",
    "employer_name_address": "Employer name and address",
    "pi_co_pi": "PI/Co-PI",
}


def field_label(loc: tuple) -> str:
    """Human-readable name of the innermost named field in an error location."""
    name = next((part for part in reversed(loc) if isinstance(part, str)), "")
    if name in FIELD_LABELS:
        return FIELD_LABELS[name]
    return name.replace("_", " ").capitalize() or "Value"


def _format_message(error: dict) -> str:
    message = error["msg"]
    error_type = error["type"]
    if error_type == "value_error":
        # "Value error, <message>" -> "<message>"
        return message.split(", ", 1)[-1]
    if error_type == "missing":
        return f"{field_label(error['loc'])} is required"
    if error_type == "string_too_short":
        min_length = error.get("ctx", {}).get("min_length", 1)
        if min_length <= 1:
            return f"{field_label(error['loc'])} is required"
        return f"{field_label(error['loc'])} must be at least {min_length} characters"
    return message


def validate_payload(schema: type[SectionModel], data: Any) -> list[FieldError]:
    """
    Validate `data` against `schema`.

    Returns:
        Field errors in the order Pydantic reports them (empty when valid)
    """
    try:
        schema.model_validate(data)
    except ValidationError as e:
        return [
            FieldError(field=_format_loc(error["loc"]), message=_format_message(error))
            for error in e.errors(include_url=False)
        ]
    return []
