"""Document analysis models."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtractedAmount(BaseModel):
    value: float
    currency: str = "EUR"
    description: str = ""


class ExtractedDate(BaseModel):
    date: str
    context: str = ""


class ExtractedData(BaseModel):
    amounts: List[ExtractedAmount] = []
    dates: List[ExtractedDate] = []
    entities: List[str] = []


class DocumentAnalysis(BaseModel):
    """What the model read out of a document. Field aliases follow its JSON reply."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    extracted_data: ExtractedData = Field(default_factory=ExtractedData, alias="extractedData")
    document_type: str = Field(default="unknown", alias="documentType")
    suggested_action: Optional[str] = Field(default=None, alias="suggestedAction")
