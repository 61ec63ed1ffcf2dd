"""
models.py
Data structures for the ACI distribution model
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


# ============================================================
# LEDGER ENTITIES (read-only snapshot rows)
# ============================================================

@dataclass(frozen=True)
class Associate:
    """A practice associate sharing in the ACI distribution"""
    id: int
    name: str
    profession: str = ""
    is_manager: bool = False
    participation_weight: float = 1.0  # base coefficient, before manager multiplier
    join_date: Optional[date] = None
    patient_count: int = 0


@dataclass(frozen=True)
class Revenue:
    id: int
    amount: float
    date: Optional[date]
    category: str
    source: str = ""
    description: str = ""


@dataclass(frozen=True)
class Expense:
    id: int
    amount: float
    date: Optional[date]
    category: str = ""
    description: str = ""
    is_recurring: bool = False


@dataclass(frozen=True)
class Meeting:
    """An RCP (multi-professional coordination) meeting"""
    id: int
    date: Optional[date]
    title: str = ""
    duration: int = 60  # minutes


@dataclass(frozen=True)
class Attendance:
    meeting_id: int
    associate_id: int
    attended: bool = False


@dataclass(frozen=True)
class Project:
    id: int
    title: str = ""
    status: str = "active"
    weight: float = 1.0


@dataclass(frozen=True)
class Assignment:
    """An associate's contribution to a project, on whatever scale the project uses"""
    project_id: int
    associate_id: int
    contribution: float = 0.0


# ============================================================
# CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class DistributionConfig:
    """Resolved distribution settings, built once per computation"""
    fixed_share: float = 0.5
    rcp_share: float = 0.25
    project_share: float = 0.25
    manager_weight: float = 1.5


@dataclass
class LedgerSnapshot:
    """Everything the engine reads, captured before any calculation starts"""
    associates: List[Associate] = field(default_factory=list)
    revenues: List[Revenue] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    meetings: List[Meeting] = field(default_factory=list)
    attendances: List[Attendance] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)


# ============================================================
# RESULT STRUCTURES
# ============================================================

@dataclass
class PoolSummary:
    """Figures derived from revenue and expenses for one fiscal year"""
    year: int
    total_aci_revenue: float = 0.0
    total_revenue: float = 0.0
    total_expenses: float = 0.0

    @property
    def net_amount(self) -> float:
        return self.total_aci_revenue - self.total_expenses


@dataclass
class AttendanceInfo:
    minutes: int = 0
    percentage: float = 0.0  # 0-100


@dataclass
class ContributionInfo:
    project_count: int = 0
    percentage: float = 0.0  # 0-100, share of weighted contribution


@dataclass
class PartitionResult:
    """One partition's per-associate amounts plus how it was allocated"""
    pool: float
    shares: Dict[int, float] = field(default_factory=dict)
    equal_split: bool = False


@dataclass
class AssociateShare:
    associate_id: int
    associate_name: str
    profession: str
    is_manager: bool
    base_share: float = 0.0      # fixed partition
    rcp_share: float = 0.0       # attendance partition
    project_share: float = 0.0   # project partition
    total_share: float = 0.0
    percentage_share: float = 0.0

    def to_dict(self) -> dict:
        return {
            "associateId": self.associate_id,
            "associateName": self.associate_name,
            "profession": self.profession,
            "isManager": self.is_manager,
            "baseShare": self.base_share,
            "rcpShare": self.rcp_share,
            "projectShare": self.project_share,
            "totalShare": self.total_share,
            "percentageShare": self.percentage_share,
        }


@dataclass
class DistributionResult:
    """
    Output of one distribution run

    Carries the pool figures, the sorted per-associate shares and the raw
    meetings/projects plus breakdowns needed for drill-down displays.
    """
    year: int
    total_aci_revenue: float
    total_revenue: float
    total_expenses: float = 0.0
    associate_shares: List[AssociateShare] = field(default_factory=list)
    meetings: List[Meeting] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    rcp_attendance: Dict[int, AttendanceInfo] = field(default_factory=dict)
    project_contributions: Dict[int, ContributionInfo] = field(default_factory=dict)
    config: DistributionConfig = field(default_factory=DistributionConfig)

    @property
    def net_amount(self) -> float:
        return self.total_aci_revenue - self.total_expenses

    @property
    def total_distributed(self) -> float:
        return sum(s.total_share for s in self.associate_shares)

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON shape used by the HTTP layer"""
        return {
            "year": self.year,
            "totalAciRevenue": self.total_aci_revenue,
            "totalRevenue": self.total_revenue,
            "totalExpenses": self.total_expenses,
            "netAmount": self.net_amount,
            "associateShares": [s.to_dict() for s in self.associate_shares],
            "rcpMeetings": [
                {"id": m.id, "date": m.date.isoformat() if m.date else None,
                 "title": m.title, "duration": m.duration}
                for m in self.meetings
            ],
            "projects": [
                {"id": p.id, "title": p.title, "status": p.status, "weight": p.weight}
                for p in self.projects
            ],
            "rcpAttendance": {
                aid: {"minutes": info.minutes, "percentage": info.percentage}
                for aid, info in self.rcp_attendance.items()
            },
            "projectContributions": {
                aid: {"projectCount": info.project_count, "percentage": info.percentage}
                for aid, info in self.project_contributions.items()
            },
        }
