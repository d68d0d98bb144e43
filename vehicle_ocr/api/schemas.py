"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class OCRResultResponse(BaseModel):
    """Extracted registration fields; absent fields are omitted from JSON."""

    model_config = ConfigDict(populate_by_name=True)

    vin: str | None = None
    engine_number: str | None = Field(default=None, alias="engineNumber")
    license_plate: str | None = Field(default=None, alias="licensePlate")
    brand: str | None = None
    color: str | None = None
    owner_name: str | None = Field(default=None, alias="ownerName")
    address: str | None = None
    registration_date: str | None = Field(default=None, alias="registrationDate")
    raw_text: str = Field(alias="rawText")
    confidence: float = Field(ge=0, le=100)
    heuristic_fields: list[str] = Field(default_factory=list, alias="heuristicFields")


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch extraction."""

    filename: str
    result: OCRResultResponse | None = None
    error: str | None = None


class BatchExtractionResponse(BaseModel):
    """Response schema for batch extraction of multiple photos."""

    success: bool
    total_documents: int
    successful: int
    failed: int
    results: list[BatchItemResponse]


class FieldRuleInfo(BaseModel):
    """One rule of a field's extraction cascade."""

    name: str
    anchored: bool


class FieldInfo(BaseModel):
    """An extractable field and its rules in priority order."""

    name: str
    rules: list[FieldRuleInfo]


class FieldsResponse(BaseModel):
    """Response schema listing the extractable fields."""

    fields: list[FieldInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    languages_available: list[str]
