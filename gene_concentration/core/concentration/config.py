"""Configuration for concentration scoring."""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ConcentrationConfig:
    """Configuration for the concentration pipeline.

    Attributes
    ----------
    condition : str, optional
        Condition whose cells are aggregated. None uses the run's
        condition_a (the induced condition).
    """

    condition: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConcentrationConfig":
        """Create from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_dict(self) -> Dict[str, Any]:
        return {"condition": self.condition}
