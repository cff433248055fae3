from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

# Required text: surrounding whitespace is dropped before the length check
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("must not be null")
    return value

# Faculty

class FacultyDetails(BaseModel):
    """Fields stored in faculty_details."""
    model_config = ConfigDict(extra="ignore")

    Email: Optional[str] = None
    Phone_Number: Optional[str] = None
    PAN_Number: Optional[str] = None
    Aadhaar_Number: Optional[str] = None
    Highest_Degree: Optional[str] = None
    Area_of_Certification: Optional[str] = None
    Date_of_Joining: Optional[date] = None
    Experience: Optional[int] = Field(None, ge=0)
    Past_Experience: Optional[str] = None
    Age: Optional[int] = Field(None, ge=18)
    Current_Designation: Optional[str] = Field(None, description="Professor, Associate Professor, Assistant Professor, ...")
    Date_of_Birth: Optional[date] = None
    Nature_of_Association: Optional[str] = None
    Research_Interest: Optional[str] = None
    Bio: Optional[str] = None

    def detail_values(self) -> Dict[str, Any]:
        return self.model_dump(include=set(FacultyDetails.model_fields), exclude_unset=True)


class FacultyCreate(FacultyDetails):
    F_name: RequiredText
    F_dept: RequiredText = Field(..., description="Department name")
    deptPrefix: Optional[str] = Field(None, description="Id prefix for departments outside the built-in map")


class FacultyUpdate(FacultyDetails):
    F_name: Optional[RequiredText] = None
    F_dept: Optional[RequiredText] = None

    @field_validator("F_name", "F_dept")
    @classmethod
    def names_not_null(cls, value):
        return _reject_null(value)

# Publications

PublicationType = Literal["journal", "conference", "book", "book_chapter", "other"]


class PublicationCreate(BaseModel):
    facultyId: Optional[int] = Field(None, description="Target faculty; ignored for faculty callers")
    title_of_the_paper: RequiredText
    name_of_the_conference: RequiredText
    Year_Of_Study: RequiredText
    paper_link: Optional[str] = None
    publication_type: PublicationType = "conference"
    doi: Optional[str] = None


class PublicationUpdate(BaseModel):
    id: int = Field(..., description="publication_id to update")
    title_of_the_paper: Optional[RequiredText] = None
    name_of_the_conference: Optional[RequiredText] = None
    Year_Of_Study: Optional[RequiredText] = None
    paper_link: Optional[str] = None
    publication_type: Optional[PublicationType] = None
    doi: Optional[str] = None

    @field_validator("title_of_the_paper", "name_of_the_conference", "Year_Of_Study", "publication_type")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)

    def update_values(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"id"}, exclude_unset=True)

# Awards (create is multipart, see the awards router)

class AwardUpdate(BaseModel):
    award_name: Optional[RequiredText] = None
    awarding_organization: Optional[RequiredText] = None
    award_description: Optional[str] = None
    award_date: Optional[date] = None
    category: Optional[str] = None

    @field_validator("award_name", "awarding_organization", "award_date")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)

# Memberships and contributions

class MembershipCreate(BaseModel):
    facultyId: Optional[int] = None
    organization: RequiredText
    organization_category: Optional[str] = "National"
    membership_type: RequiredText
    membership_identifier: Optional[str] = None
    certificate_url: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None


class ContributionCreate(BaseModel):
    f_id: Optional[int] = None
    Contribution_Type: RequiredText
    Contribution_Title: RequiredText
    Description: Optional[str] = None
    Journal_Conference: Optional[str] = None
    Year: Optional[int] = None
    Contribution_Date: Optional[date] = None


class MembershipUpdate(BaseModel):
    organization: Optional[RequiredText] = None
    organization_category: Optional[str] = None
    membership_type: Optional[RequiredText] = None
    membership_identifier: Optional[str] = None
    certificate_url: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("organization", "membership_type", "start_date")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)

# Research projects and workshops

ProjectStatus = Literal["planned", "ongoing", "completed"]
WorkshopType = Literal["workshop", "conference", "seminar"]
WorkshopRole = Literal["attendee", "presenter", "organizer"]


class ResearchProjectCreate(BaseModel):
    faculty_id: Optional[int] = Field(None, description="Target faculty; ignored for faculty callers")
    title: RequiredText
    description: RequiredText
    start_date: date
    end_date: Optional[date] = None
    status: ProjectStatus
    funding_agency: Optional[str] = None
    funding_amount: Optional[Decimal] = Field(None, ge=0)


class ResearchProjectUpdate(BaseModel):
    title: Optional[RequiredText] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    funding_agency: Optional[str] = None
    funding_amount: Optional[Decimal] = Field(None, ge=0)

    @field_validator("title", "start_date", "status")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)


class WorkshopCreate(BaseModel):
    faculty_id: Optional[int] = Field(None, description="Target faculty; ignored for faculty callers")
    title: RequiredText
    description: RequiredText
    start_date: date
    end_date: Optional[date] = None
    venue: RequiredText
    type: WorkshopType
    role: WorkshopRole


class WorkshopUpdate(BaseModel):
    title: Optional[RequiredText] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    venue: Optional[RequiredText] = None
    type: Optional[WorkshopType] = None
    role: Optional[WorkshopRole] = None

    @field_validator("title", "start_date", "venue", "type", "role")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)
