from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from roadhotspot.traces.data_sources import TraceColumns

from .confidence import ConfidenceKind

logger = logging.getLogger(__name__)

STRATEGIES = ("growth", "pairwise", "dbscan", "condensed")


def _optional_float(value: object, label: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be numeric, got {value!r}") from exc


def _as_bool(value: object, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n", ""}:
        return False
    raise ValueError(f"{label} must be a boolean, got {value!r}")


@dataclass
class MiningConfig:
    strategy: str = "condensed"
    support_threshold: int = 2
    confidence_threshold: float = 0.0
    confidence_kind: ConfidenceKind = ConfidenceKind.LLR
    significance: Optional[float] = None
    simulations: int = 100
    seed: Optional[int] = None
    workers: int = 1
    eps_meters: float = 100.0
    min_pts: int = 3
    remove_redundancy: bool = True
    event_column: Optional[str] = None
    event_threshold: Optional[float] = None
    relative_threshold: bool = False
    columns: TraceColumns = field(default_factory=TraceColumns)

    def __post_init__(self) -> None:
        self.strategy = str(self.strategy or "").strip().lower()
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy {self.strategy!r}; expected one of {', '.join(STRATEGIES)}"
            )
        self.support_threshold = int(self.support_threshold)
        if self.support_threshold < 1:
            raise ValueError("support_threshold must be at least 1")
        self.confidence_threshold = float(self.confidence_threshold)
        self.confidence_kind = ConfidenceKind.parse(self.confidence_kind)
        self.significance = _optional_float(self.significance, "significance")
        if self.significance is not None and not 0.0 < self.significance < 1.0:
            raise ValueError("significance must lie strictly between 0 and 1")
        self.simulations = int(self.simulations)
        if self.simulations <= 0:
            raise ValueError("simulations must be positive")
        self.seed = int(self.seed) if self.seed is not None else None
        self.workers = int(self.workers)
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        self.eps_meters = float(self.eps_meters)
        if self.eps_meters <= 0:
            raise ValueError("eps_meters must be positive")
        self.min_pts = int(self.min_pts)
        if self.min_pts < 1:
            raise ValueError("min_pts must be at least 1")
        self.remove_redundancy = _as_bool(self.remove_redundancy, "remove_redundancy")
        self.event_threshold = _optional_float(self.event_threshold, "event_threshold")
        self.relative_threshold = _as_bool(self.relative_threshold, "relative_threshold")
        if isinstance(self.columns, Mapping):
            self.columns = TraceColumns.from_mapping(self.columns)
        if self.event_column is not None and self.event_threshold is None:
            raise ValueError("event_threshold is required when event_column is set")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, object]]) -> "MiningConfig":
        data = data or {}
        if not isinstance(data, Mapping):
            raise TypeError("Mining configuration must be a mapping at the top level")
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown mining configuration keys: {', '.join(unknown)}")
        values: Dict[str, object] = dict(data)
        if "columns" in values:
            values["columns"] = TraceColumns.from_mapping(values["columns"])
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MiningConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Mining config YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return cls.from_mapping(data)

    def to_dict(self) -> Dict[str, object]:
        output = asdict(self)
        output["confidence_kind"] = self.confidence_kind.value
        return output

    def to_yaml(self, path: str | Path) -> None:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self.to_dict(), handle, sort_keys=True)

    def with_overrides(self, **overrides: object) -> "MiningConfig":
        """Copy with every non-``None`` override applied and re-validated."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        logger.debug("Overriding configuration values: %s", ", ".join(sorted(changes)))
        return replace(self, **changes)


__all__ = ["MiningConfig", "STRATEGIES"]
