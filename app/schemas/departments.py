from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.faculty import RequiredText

# Request Models

class DepartmentDetails(BaseModel):
    """Extended department fields stored in department_details."""
    model_config = ConfigDict(extra="ignore")

    Establishment_Year: Optional[int] = Field(None, description="Year the department was founded")
    Department_Code: Optional[str] = Field(None, description="Short code, e.g. CE")
    Email_ID: Optional[str] = None
    Department_Phone_Number: Optional[str] = None
    HOD_ID: Optional[int] = Field(None, description="faculty.F_id of the head of department")
    Vision: Optional[str] = None
    Mission: Optional[str] = None
    Total_Faculty: Optional[int] = None
    Total_Students: Optional[int] = None
    Website_URL: Optional[str] = None
    Notable_Achievements: Optional[str] = None
    Industry_Collaboration: Optional[str] = None
    Research_Focus_Area: Optional[str] = None

    def detail_values(self) -> Dict[str, Any]:
        """Only the detail fields the caller actually sent."""
        return self.model_dump(include=set(DepartmentDetails.model_fields), exclude_unset=True)


class DepartmentCreate(DepartmentDetails):
    Department_Name: RequiredText = Field(..., description="Department display name")


class DepartmentUpdate(DepartmentDetails):
    Department_Name: Optional[RequiredText] = Field(None, description="New display name; unchanged when omitted")
