from pydantic import BaseModel, field_validator
from typing import Any, Dict, List, Literal, Optional, Union


class DimensionScores(BaseModel):
    completeness: float
    uniqueness: float
    consistency: float
    validity: float
    timeliness: Optional[float] = None

    def present(self) -> Dict[str, float]:
        return self.model_dump(exclude_none=True)


class WeightMap(BaseModel):
    completeness: Optional[float] = None
    uniqueness: Optional[float] = None
    consistency: Optional[float] = None
    validity: Optional[float] = None
    timeliness: Optional[float] = None

    def configured(self) -> Dict[str, float]:
        return self.model_dump(exclude_none=True)


class DatasetSummary(BaseModel):
    row_count: int
    column_count: int
    columns: List[str]


class ScoreRowsRequest(BaseModel):
    rows: List[Dict[str, Optional[str]]]
    weights: Optional[WeightMap] = None

    @field_validator("rows", mode="before")
    @classmethod
    def stringify_cells(cls, rows: Any) -> Any:
        """Rows are string-typed; numbers and booleans from JSON are converted here."""
        if not isinstance(rows, list):
            return rows
        return [
            {str(k): (None if v is None else str(v)) for k, v in row.items()}
            if isinstance(row, dict) else row
            for row in rows
        ]


class CompositeRequest(BaseModel):
    dimensions: Dict[str, Any]
    weights: Optional[WeightMap] = None


class CompositeResponse(BaseModel):
    dimensions: Dict[str, Union[int, float]]
    DQS: int


class ColumnRates(BaseModel):
    null_rate: float
    unique_rate: float


class DatasetProfile(BaseModel):
    row_count: int
    columns: Dict[str, ColumnRates]


class AnalysisResponse(CompositeResponse):
    metadata: DatasetSummary
    profile: DatasetProfile


class ExplanationRequest(BaseModel):
    dimensions: DimensionScores
    DQS: int
    metadata: Optional[DatasetSummary] = None


class Recommendation(BaseModel):
    severity: Literal["High", "Medium", "Low"]
    text: str
    impact: Literal["Compliance", "Operations", "Analytics"]


class ExplanationResponse(BaseModel):
    explanation: str
    problem_areas: List[str] = []
    recommendations: List[Recommendation]
