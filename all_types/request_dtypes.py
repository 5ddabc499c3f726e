from typing import Dict, TypeVar, Generic, Optional

from pydantic import BaseModel, ConfigDict, Field

U = TypeVar("U")


class Coordinate(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class ReqModel(BaseModel, Generic[U]):
    message: str
    request_info: Dict
    request_body: U


class ReqRiskAnalysis(Coordinate):
    # Validated by the engine, not here
    model_config = ConfigDict(populate_by_name=True)

    target_category: Optional[str] = Field(default=None, alias="targetCategory")
