from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ScenarioResult(BaseModel):
    """Outcome of a scenario run"""
    name: str = Field(..., description="Scenario name")
    success: bool = Field(..., description="Whether every check passed")
    message: str = Field(default="", description="Failure reason or summary")
    started_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the scenario started"
    )
    finished_at: Optional[datetime] = Field(None, description="When the scenario ended")

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1
