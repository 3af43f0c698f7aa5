"""
Error taxonomy for the scoring-and-join pipeline.

Fatal input problems raise ``MalformedInputError`` with actionable
diagnostics. Per-gene and per-cluster problems are recoverable: they are
recorded under an ``ExclusionReason`` and the gene simply does not reach
the final table.

Error Codes:
    E001_UNKNOWN_GENE: Requested gene not present in the expression store
    E002_UNKNOWN_CLUSTER: Requested cluster not present in the store
    E003_UNKNOWN_CONDITION: Requested condition not present in the store
    E004_MISSING_COLUMN: Required column not found in obs or a table
    E005_CONFLICTING_CATEGORY: Gene assigned to more than one category
    E006_EMPTY_INPUT: Input contains no usable data
    E007_NEGATIVE_EXPRESSION: Aggregated expression contains negative or non-finite values
"""

from __future__ import annotations

from difflib import get_close_matches
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ExclusionReason(Enum):
    """Recoverable reasons for a gene (or cluster) being left out."""

    UNDEFINED_SCORE = "undefined_score"  # zero total expression across clusters
    MISSING_DIFFERENTIAL_DATA = "missing_differential_data"  # too few cells
    NO_INDUCTION_EVIDENCE = "no_induction_evidence"  # no cluster passes filter
    JOIN_MISS = "join_miss"  # absent from one side of the join


class UndefinedScoreError(ArithmeticError):
    """Concentration score requested for a gene with zero total expression."""

    def __init__(self, gene: Optional[str] = None):
        self.gene = gene
        label = f"gene '{gene}'" if gene is not None else "expression vector"
        super().__init__(f"Concentration score undefined for {label}: total expression is 0")


class MalformedInputError(ValueError):
    """Structural input error that aborts the run.

    Attributes
    ----------
    message : str
        Human-readable error description
    error_code : str
        Machine-readable error code for programmatic handling
    expected : Any
        What the validator expected to find
    found : Any
        What was actually found
    suggestion : str
        Actionable suggestion for fixing the error
    context : Dict[str, Any]
        Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        error_code: str = "E000_UNKNOWN",
        expected: Any = None,
        found: Any = None,
        suggestion: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.expected = expected
        self.found = found
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.expected is not None:
            parts.append(f"  Expected: {self.expected}")
        if self.found is not None:
            parts.append(f"  Found: {self.found}")
        if self.suggestion:
            parts.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "expected": str(self.expected) if self.expected is not None else None,
            "found": str(self.found) if self.found is not None else None,
            "suggestion": self.suggestion,
            "context": self.context,
        }


def suggest_matches(missing: Iterable[str], available: Iterable[str], n: int = 3) -> str:
    """Build a "Did you mean" hint from close matches of the first missing id."""
    missing = list(missing)
    available = [str(a) for a in available]
    if not missing or not available:
        return ""
    matches = get_close_matches(str(missing[0]), available, n=n, cutoff=0.4)
    if matches:
        return f"Did you mean: {', '.join(matches)}?"
    if len(available) <= 10:
        return f"Available: {', '.join(available)}"
    return f"Available include: {', '.join(available[:5])}... ({len(available)} total)"


def require_known(
    requested: Iterable[str],
    available: Iterable[str],
    kind: str,
    error_code: str,
) -> None:
    """Raise MalformedInputError if any requested id is not available.

    Parameters
    ----------
    requested : Iterable[str]
        Identifiers the run is configured for.
    available : Iterable[str]
        Identifiers the data source can supply.
    kind : str
        Noun for messages ("gene", "cluster", "condition").
    error_code : str
        Error code to attach.
    """
    available_list: List[str] = [str(a) for a in available]
    known = set(available_list)
    missing = [str(r) for r in requested if str(r) not in known]
    if not missing:
        return

    shown = missing[:10]
    more = f" (+{len(missing) - 10} more)" if len(missing) > 10 else ""
    raise MalformedInputError(
        f"{len(missing)} requested {kind}(s) not available in input",
        error_code=error_code,
        expected=f"{kind}s present in input",
        found=f"{shown}{more}",
        suggestion=suggest_matches(missing, available_list),
        context={"n_missing": len(missing), "kind": kind},
    )
