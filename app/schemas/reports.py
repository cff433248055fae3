from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class ReportRequest(BaseModel):
    """Request schema for POST /api/reports."""
    reportType: Literal["faculty", "students", "research", "full"] = Field("faculty", description="Which report to build")
    departmentId: Optional[Union[int, str]] = Field(None, description="Department id or name; omitted or 'all' for every department")
    format: Literal["pdf", "json"] = "pdf"
    requestType: Optional[Literal["hod-lookup"]] = Field(None, description="'hod-lookup' returns only the HOD name")
    facultyId: Optional[int] = Field(None, description="Faculty whose HOD is looked up")


class AdminQueryRequest(BaseModel):
    query: Optional[str] = Field(None, description="SQL text to run on the console")
