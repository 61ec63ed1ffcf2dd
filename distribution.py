"""
distribution.py
ACI revenue distribution engine

KEY PRINCIPLES:
- Pool = ACI revenue of the year minus expenses of the year
- Three independent partitions of the pool, each fully allocated:
    * Fixed share: participation weight x manager multiplier
    * RCP share: minutes of attended meetings
    * Project share: project weight x contribution normalised to 0-100 per project
- A partition with nothing to measure falls back to an equal split
- All reads happen before any calculation; a failed read aborts the run
"""

from datetime import date
from typing import Dict, List, Optional, Tuple
import logging

from config import (ACI_CATEGORY, ACTIVE_STATUS, DEFAULT_MEETING_DURATION,
                    DEFAULT_PROJECT_WEIGHT, resolve_distribution_config)
from models import (Associate, Revenue, Expense, Meeting, Attendance, Project,
                    Assignment, DistributionConfig, LedgerSnapshot, PoolSummary,
                    PartitionResult, AttendanceInfo, ContributionInfo,
                    AssociateShare, DistributionResult)

logger = logging.getLogger(__name__)


class DistributionCalculationError(Exception):
    """The distribution could not be computed because an input could not be read"""


def _number(value, default: float = 0.0) -> float:
    """Float value of a numeric field, ``default`` when missing or unparsable"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return number


# ============================================================
# POOL
# ============================================================

def compute_pool(revenues: List[Revenue], expenses: List[Expense], year: int) -> PoolSummary:
    """
    Sum the year's revenue and expenses

    Only ACI revenue feeds the pool; total_revenue covers every category and
    is informational.  Expenses are filtered to the same year as revenue.
    """
    pool = PoolSummary(year=year)
    for rev in revenues:
        if rev.date is None or rev.date.year != year:
            continue
        amount = _number(rev.amount)
        pool.total_revenue += amount
        if rev.category == ACI_CATEGORY:
            pool.total_aci_revenue += amount

    pool.total_expenses = sum(
        _number(exp.amount) for exp in expenses
        if exp.date is not None and exp.date.year == year
    )
    return pool


def equal_split(associates: List[Associate], pool: float) -> PartitionResult:
    if not associates:
        return PartitionResult(pool=pool, equal_split=True)
    each = pool / len(associates)
    return PartitionResult(pool=pool, shares={a.id: each for a in associates}, equal_split=True)


# ============================================================
# FIXED SHARE
# ============================================================

def effective_weight(associate: Associate, manager_weight: float) -> float:
    """Participation weight, amplified by the manager multiplier for managers"""
    weight = _number(associate.participation_weight)
    if associate.is_manager:
        return weight * manager_weight
    return weight


def fixed_share_partition(associates: List[Associate], pool: float,
                          manager_weight: float) -> PartitionResult:
    """Split ``pool`` in proportion to effective participation weight"""
    weights = {a.id: effective_weight(a, manager_weight) for a in associates}
    total_weight = sum(weights.values())

    if total_weight <= 0:
        logger.warning("Total participation weight is zero, fixed share split equally")
        return equal_split(associates, pool)

    logger.debug(f"Total associate weight: {total_weight}")
    shares = {aid: (w / total_weight) * pool for aid, w in weights.items()}
    return PartitionResult(pool=pool, shares=shares)


# ============================================================
# RCP (ATTENDANCE) SHARE
# ============================================================

def meeting_duration(meeting: Meeting) -> int:
    """Meeting length in minutes; missing, invalid or non-positive means 60"""
    minutes = _number(meeting.duration)
    if minutes <= 0:
        return DEFAULT_MEETING_DURATION
    return int(round(minutes))


def attendance_minutes(associates: List[Associate], meetings: List[Meeting],
                       attendances: List[Attendance]) -> Dict[int, int]:
    """
    Minutes of attended meetings per associate

    Rows for unknown meetings or associates, and rows not marked attended,
    are ignored.
    """
    durations = {m.id: meeting_duration(m) for m in meetings}
    known = {a.id for a in associates}

    minutes: Dict[int, int] = {}
    for att in attendances:
        if not att.attended or att.associate_id not in known:
            continue
        duration = durations.get(att.meeting_id)
        if duration is None:
            continue
        minutes[att.associate_id] = minutes.get(att.associate_id, 0) + duration
    return minutes


def attendance_share_partition(
    associates: List[Associate],
    meetings: List[Meeting],
    attendances: List[Attendance],
    pool: float,
) -> Tuple[PartitionResult, Dict[int, AttendanceInfo]]:
    """
    Split ``pool`` in proportion to attended meeting minutes

    Associates with no minutes get nothing, unless nobody has any minutes,
    in which case the pool is split equally.

    Returns:
        (partition, {associate_id: AttendanceInfo}) - the breakdown only lists
        associates with recorded minutes
    """
    minutes = attendance_minutes(associates, meetings, attendances)
    total_minutes = sum(minutes.values())

    if total_minutes <= 0:
        logger.info("No RCP attendance recorded, RCP share split equally")
        return equal_split(associates, pool), {}

    logger.info(f"Total RCP attendance: {total_minutes} minutes")

    shares = {}
    breakdown = {}
    for a in associates:
        m = minutes.get(a.id, 0)
        shares[a.id] = (m / total_minutes) * pool
        if m > 0:
            breakdown[a.id] = AttendanceInfo(minutes=m, percentage=m / total_minutes * 100.0)
            logger.debug(f"{a.name}: {m} minutes = {shares[a.id]:.2f}")
    return PartitionResult(pool=pool, shares=shares), breakdown


# ============================================================
# PROJECT SHARE
# ============================================================

def normalize_contributions(assignments: List[Assignment]) -> List[float]:
    """
    Rescale one project's contributions to a 0-100 scale

    Contributions already summing to 100 are returned unchanged.  A project
    whose contributions sum to 0 yields zeros rather than dividing by zero.
    """
    values = [_number(a.contribution) for a in assignments]
    total = sum(values)
    if total <= 0:
        return [0.0 for _ in values]
    if total == 100:
        return values
    return [v / total * 100.0 for v in values]


def weighted_contributions(
    associates: List[Associate],
    projects: List[Project],
    assignments: List[Assignment],
) -> Tuple[Dict[int, float], Dict[int, int]]:
    """
    Weighted, normalised contribution and active-project count per associate

    Only active projects count.  Assignments to unknown associates are
    dropped before normalising so the remaining contributions fill 0-100.
    """
    known = {a.id for a in associates}
    by_project: Dict[int, List[Assignment]] = {}
    for asg in assignments:
        if asg.associate_id in known:
            by_project.setdefault(asg.project_id, []).append(asg)

    contribution: Dict[int, float] = {}
    project_count: Dict[int, int] = {}
    for project in projects:
        if project.status != ACTIVE_STATUS:
            continue
        project_assignments = by_project.get(project.id, [])
        if not project_assignments:
            continue

        normalized = normalize_contributions(project_assignments)
        if not any(normalized):
            logger.warning(f"Project {project.id} ({project.title}): contributions sum to zero, ignored")

        for asg, value in zip(project_assignments, normalized):
            weighted = _number(project.weight, DEFAULT_PROJECT_WEIGHT) * value
            contribution[asg.associate_id] = contribution.get(asg.associate_id, 0.0) + weighted
            project_count[asg.associate_id] = project_count.get(asg.associate_id, 0) + 1

    return contribution, project_count


def project_share_partition(
    associates: List[Associate],
    projects: List[Project],
    assignments: List[Assignment],
    pool: float,
) -> Tuple[PartitionResult, Dict[int, ContributionInfo]]:
    """
    Split ``pool`` in proportion to weighted project contribution

    Falls back to an equal split when there is no active project, no
    assignment, or every weighted contribution is zero.

    The breakdown percentage is the associate's share of total weighted
    contribution on a 0-100 scale, not project_count over the number of
    assignments.
    """
    active = [p for p in projects if p.status == ACTIVE_STATUS]
    if not active or not assignments:
        logger.info("No active projects or assignments, project share split equally")
        return equal_split(associates, pool), {}

    contribution, project_count = weighted_contributions(associates, active, assignments)
    total_contribution = sum(contribution.values())

    breakdown = {
        aid: ContributionInfo(
            project_count=count,
            percentage=(contribution.get(aid, 0.0) / total_contribution * 100.0
                        if total_contribution > 0 else 0.0),
        )
        for aid, count in project_count.items()
    }

    if total_contribution <= 0:
        logger.info("Total project contribution is zero, project share split equally")
        return equal_split(associates, pool), breakdown

    shares = {a.id: (contribution.get(a.id, 0.0) / total_contribution) * pool for a in associates}
    return PartitionResult(pool=pool, shares=shares), breakdown


# ============================================================
# RESULT ASSEMBLY
# ============================================================

def assemble_shares(associates: List[Associate], fixed: PartitionResult,
                    rcp: PartitionResult, project: PartitionResult) -> List[AssociateShare]:
    """Merge the partitions per associate, add percentages, sort by total descending"""
    shares = []
    for a in associates:
        base = fixed.shares.get(a.id, 0.0)
        rcp_amt = rcp.shares.get(a.id, 0.0)
        proj_amt = project.shares.get(a.id, 0.0)
        shares.append(AssociateShare(
            associate_id=a.id,
            associate_name=a.name,
            profession=a.profession,
            is_manager=a.is_manager,
            base_share=base,
            rcp_share=rcp_amt,
            project_share=proj_amt,
            total_share=base + rcp_amt + proj_amt,
        ))

    total_distributed = sum(s.total_share for s in shares)
    for s in shares:
        s.percentage_share = (s.total_share / total_distributed * 100.0) if total_distributed > 0 else 0.0

    # sorted() is stable: ties keep ledger order
    return sorted(shares, key=lambda s: s.total_share, reverse=True)


def compute_distribution(snapshot: LedgerSnapshot, config: DistributionConfig,
                         year: int) -> DistributionResult:
    """
    Pure distribution over an already-read snapshot

    Returns an empty share list (with the pool totals filled in) when the net
    amount is not positive or there are no associates.
    """
    pool = compute_pool(snapshot.revenues, snapshot.expenses, year)
    active_projects = [p for p in snapshot.projects if p.status == ACTIVE_STATUS]

    result = DistributionResult(
        year=year,
        total_aci_revenue=pool.total_aci_revenue,
        total_revenue=pool.total_revenue,
        total_expenses=pool.total_expenses,
        meetings=list(snapshot.meetings),
        projects=active_projects,
        config=config,
    )

    net_amount = pool.net_amount
    logger.info(f"ACI revenue {year}: {pool.total_aci_revenue:,.2f}")
    logger.info(f"Expenses {year}: {pool.total_expenses:,.2f}")
    logger.info(f"Net amount to distribute: {net_amount:,.2f}")

    if net_amount <= 0 or not snapshot.associates:
        logger.info("Nothing to distribute or no associates")
        return result

    associates = snapshot.associates

    fixed = fixed_share_partition(associates, net_amount * config.fixed_share, config.manager_weight)
    rcp, rcp_breakdown = attendance_share_partition(
        associates, snapshot.meetings, snapshot.attendances, net_amount * config.rcp_share)
    project, project_breakdown = project_share_partition(
        associates, active_projects, snapshot.assignments, net_amount * config.project_share)

    result.associate_shares = assemble_shares(associates, fixed, rcp, project)
    result.rcp_attendance = rcp_breakdown
    result.project_contributions = project_breakdown

    for s in result.associate_shares:
        logger.debug(f"{s.associate_name}: {s.total_share:,.2f} ({s.percentage_share:.2f}%)")

    return result


# ============================================================
# ENTRY POINT
# ============================================================

def read_snapshot(ledger) -> LedgerSnapshot:
    """Read every collection the engine needs from a LedgerReader"""
    return LedgerSnapshot(
        associates=ledger.list_associates(),
        revenues=ledger.list_revenues(),
        expenses=ledger.list_expenses(),
        meetings=ledger.list_meetings(),
        attendances=ledger.list_all_attendances(),
        projects=ledger.list_active_projects(),
        assignments=ledger.list_all_assignments(),
    )


def calculate_distribution(ledger, settings=None, year: Optional[int] = None) -> DistributionResult:
    """
    Compute the ACI distribution for a fiscal year

    Args:
        ledger: LedgerReader supplying the entity collections
        settings: SettingsProvider (default: the ledger itself)
        year: Fiscal year (default: current year)

    Returns:
        DistributionResult

    Raises:
        DistributionCalculationError: if settings or ledger data cannot be read
    """
    if year is None:
        year = date.today().year
    if settings is None:
        settings = ledger

    try:
        config = resolve_distribution_config(settings.get_setting)
        snapshot = read_snapshot(ledger)
    except Exception as exc:
        logger.error(f"Failed to read distribution inputs: {exc}")
        raise DistributionCalculationError(f"Failed to calculate distribution: {exc}") from exc

    logger.info(
        f"Distribution {year}: {config.fixed_share * 100:.0f}% fixed, "
        f"{config.rcp_share * 100:.0f}% RCP, {config.project_share * 100:.0f}% projects, "
        f"manager weight {config.manager_weight}"
    )

    return compute_distribution(snapshot, config, year)
