"""Domain models - pure Python dataclasses representing the intake dossier and its outcomes"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ProjectType(str, Enum):
    """Document-catalog family of a dossier"""

    BASELINE = "baseline"  # residential / classic investment
    TRADER = "marchand"  # marchand de biens (buy, renovate, resell)
    DEVELOPER = "promotion"  # promotion immobiliere


class DocumentStatus(str, Enum):
    SUPPLIED = "fourni"
    PENDING = "en_attente"
    NOT_APPLICABLE = "non_applicable"
    REFUSED = "refuse"


class RiskLevel(str, Enum):
    LOW = "faible"
    MEDIUM = "moyen"
    HIGH = "eleve"
    UNKNOWN = "inconnu"


class Verdict(str, Enum):
    GO = "GO"
    CONDITIONAL_GO = "GO_SOUS_CONDITIONS"
    NO_GO = "NO_GO"


class ConditionSource(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass
class Document:
    """Document attached to a dossier"""

    id: str
    label: str
    category: str = ""
    status: DocumentStatus = DocumentStatus.PENDING


@dataclass
class Guarantee:
    """Collateral or surety pledged against the loan"""

    id: str
    type: str  # hypotheque, caution, nantissement, ...
    label: str
    amount: float


@dataclass
class Condition:
    """Committee condition precedent"""

    id: str
    text: str
    source: ConditionSource = ConditionSource.MANUAL
    met: bool = False


@dataclass
class Decision:
    """Final committee decision recorded by a human"""

    verdict: Verdict
    motivation: str = ""
    decided_at: Optional[str] = None
    decided_by: Optional[str] = None


@dataclass
class Dossier:
    """Raw loan case record, mutated by data entry"""

    id: str
    name: str
    project_type: ProjectType = ProjectType.BASELINE
    requested_amount: float = 0.0
    project_value: float = 0.0
    documents: List[Document] = field(default_factory=list)
    guarantees: List[Guarantee] = field(default_factory=list)
    conditions: List[Condition] = field(default_factory=list)
    decision: Optional[Decision] = None


@dataclass
class RequiredDocument:
    """Catalog entry: a document the committee expects for a project type"""

    id: str
    label: str
    category: str


@dataclass
class CompletenessResult:
    total: int
    provided: int
    percentage: int  # always in [0, 100]
    missing: List[str] = field(default_factory=list)


@dataclass
class DecisionDraft:
    """Automatic GO / conditional GO / NO GO proposal"""

    verdict: Verdict
    confidence: float
    motivation: str
    suggested_conditions: List[Condition] = field(default_factory=list)


@dataclass
class DossierEvaluation:
    """Output of the intake pipeline for one dossier"""

    dossier_id: str
    completeness: CompletenessResult
    ltv: Optional[float]  # ratio, None when indeterminate
    risk_level: RiskLevel
    conditions: List[Condition]
    draft: DecisionDraft
