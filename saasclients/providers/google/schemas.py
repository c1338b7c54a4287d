"""Pydantic schemas for Google Sheets v4 and Admin SDK Directory v1."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ValueInputOption(str, Enum):
    RAW = "RAW"
    USER_ENTERED = "USER_ENTERED"


class MajorDimension(str, Enum):
    ROWS = "ROWS"
    COLUMNS = "COLUMNS"


# =============================================================================
# Sheets
# =============================================================================


class ValueRange(BaseModel):
    """A range of cell values (request and response)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, use_enum_values=True)

    range: str | None = None
    major_dimension: MajorDimension | None = Field(None, alias="majorDimension")
    values: list[list[Any]] = Field(default_factory=list)

    def to_api_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class UpdateValuesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    spreadsheet_id: str = Field(..., alias="spreadsheetId")
    updated_range: str | None = Field(None, alias="updatedRange")
    updated_rows: int = Field(0, alias="updatedRows")
    updated_columns: int = Field(0, alias="updatedColumns")
    updated_cells: int = Field(0, alias="updatedCells")


class AppendValuesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    spreadsheet_id: str = Field(..., alias="spreadsheetId")
    table_range: str | None = Field(None, alias="tableRange")
    updates: UpdateValuesResponse | None = None


class SheetProperties(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sheet_id: int = Field(..., alias="sheetId")
    title: str
    index: int = 0
    sheet_type: str | None = Field(None, alias="sheetType")


class Sheet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    properties: SheetProperties


class SpreadsheetProperties(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    locale: str | None = None
    time_zone: str | None = Field(None, alias="timeZone")


class Spreadsheet(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    spreadsheet_id: str = Field(..., alias="spreadsheetId")
    spreadsheet_url: str | None = Field(None, alias="spreadsheetUrl")
    properties: SpreadsheetProperties
    sheets: list[Sheet] = Field(default_factory=list)

    def sheet_titles(self) -> list[str]:
        return [sheet.properties.title for sheet in self.sheets]


# =============================================================================
# Admin Directory
# =============================================================================


class UserName(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    given_name: str | None = Field(None, alias="givenName")
    family_name: str | None = Field(None, alias="familyName")
    full_name: str | None = Field(None, alias="fullName")


class DirectoryUser(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    primary_email: str = Field(..., alias="primaryEmail")
    name: UserName | None = None
    is_admin: bool = Field(False, alias="isAdmin")
    suspended: bool = False
    org_unit_path: str | None = Field(None, alias="orgUnitPath")
    last_login_time: str | None = Field(None, alias="lastLoginTime")
    creation_time: str | None = Field(None, alias="creationTime")


class DirectoryGroup(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    email: str
    name: str | None = None
    description: str | None = None
    direct_members_count: int | None = Field(None, alias="directMembersCount")
