"""Allowance Calculator — total days available per (entitlement, year).

    total(E, Y, depth) =
        0                              if depth > max_depth (chain aborted)
        UNLIMITED                      if the resolved policy is unlimited
        base(E, Y) + lieu(E, Y)
          + Σ inbound carry-over       otherwise

Inbound carry-over for (E, Y) comes from every active prior-year (Y-1) policy
with carry-over enabled whose redirection target is E, or which has no target
and is itself for E. Each contribution needs total(source, Y-1, depth+1) and
the source's usage in Y-1, so year Y is only resolved once Y-1 is.

Results live in an arena keyed by (entitlement, year, depth): the depth is
part of the key because a chain truncated near ``max_depth`` yields less than
the same (entitlement, year) reached from the top.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from leave_planner.balances.carry_over import (
    UNLIMITED,
    ZERO,
    carry_over_expiry_date,
    enforce_carry_over_expiry,
    expiry_label,
    resolve_carry_over,
)
from leave_planner.balances.models import (
    EntitlementType,
    ResolvedPolicy,
    Trip,
    UserProfile,
    resolve_policy,
)
from leave_planner.balances.schemas import (
    BalanceBreakdown,
    BalanceOut,
    CarryOverContribution,
)
from leave_planner.balances.usage import UsageAggregator
from leave_planner.balances.weigher import TripWeigher
from leave_planner.common.constants import (
    DEFAULT_MAX_DEPTH,
    AccrualPeriod,
    EntitlementColor,
    PolicySource,
    SplitAllocationFallback,
)
from leave_planner.common.dates import months_elapsed
from leave_planner.common.exceptions import (
    BalanceWarning,
    CycleAbortedWarning,
    DanglingReferenceWarning,
)
from leave_planner.holidays.models import HolidayConfig
from leave_planner.holidays.service import count_lieu_credits

logger = logging.getLogger(__name__)

_NO_EXPIRY = date.max


class AllowanceCalculator:
    """Balance engine for one user over one immutable snapshot.

    Instances hold only memo tables derived from the snapshot; build a new
    one whenever the source data changes.
    """

    def __init__(
        self,
        user: UserProfile,
        entitlements: Iterable[EntitlementType],
        trips: Iterable[Trip],
        weigher: TripWeigher,
        *,
        holiday_configs: Iterable[HolidayConfig] = (),
        max_depth: int = DEFAULT_MAX_DEPTH,
        as_of: Optional[date] = None,
        fallback: SplitAllocationFallback = SplitAllocationFallback.full,
    ) -> None:
        self.user = user
        self.entitlements = {e.id: e for e in entitlements}
        self.holiday_configs = list(holiday_configs)
        self.max_depth = max_depth
        self.as_of = as_of
        self.usage = UsageAggregator(
            trips, weigher, user_id=user.id, fallback=fallback, on_warning=self.warn,
        )
        self.warnings: list[BalanceWarning] = []
        self._warned: set[str] = set()
        self._policies: dict[tuple[str, int], ResolvedPolicy] = {}
        self._totals: dict[tuple[str, int, int], Decimal] = {}
        self._inbound: dict[tuple[str, int, int], list[CarryOverContribution]] = {}

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    def warn(self, warning: BalanceWarning) -> None:
        """Log and collect a recovered anomaly once per distinct message."""
        if warning.message in self._warned:
            return
        self._warned.add(warning.message)
        self.warnings.append(warning)
        logger.warning("%s", warning.message)

    def policy(self, entitlement_id: str, year: int) -> ResolvedPolicy:
        key = (entitlement_id, year)
        if key not in self._policies:
            resolved = resolve_policy(
                self.entitlements.get(entitlement_id),
                self.user.policy_for(entitlement_id, year),
                entitlement_id,
                year,
            )
            if resolved.source == PolicySource.missing:
                self.warn(DanglingReferenceWarning(
                    f"Entitlement '{entitlement_id}' does not exist; "
                    f"treating its {year} allowance as 0."
                ))
            self._policies[key] = resolved
        return self._policies[key]

    def check_references(self) -> None:
        """Warn about policies, redirections and trips pointing at unknown entitlements."""
        for p in self.user.policies:
            if p.entitlement_id not in self.entitlements:
                self.warn(DanglingReferenceWarning(
                    f"Policy {p.year} references unknown entitlement '{p.entitlement_id}'; ignored."
                ))
            target = p.carry_over.target_entitlement_id
            if p.carry_over.enabled and target and target not in self.entitlements:
                self.warn(DanglingReferenceWarning(
                    f"Policy '{p.entitlement_id}' {p.year} redirects carry-over to unknown "
                    f"entitlement '{target}'; those days are dropped."
                ))
        for trip in self.usage.trips:
            referenced = [a.entitlement_id for a in trip.allocations] or [trip.entitlement_id]
            for entitlement_id in referenced:
                if entitlement_id and entitlement_id not in self.entitlements:
                    self.warn(DanglingReferenceWarning(
                        f"Trip {trip.id} is charged to unknown entitlement '{entitlement_id}'."
                    ))

    # ─────────────────────────────────────────────────────────────────
    # Allowance components
    # ─────────────────────────────────────────────────────────────────

    def base_allowance(self, entitlement_id: str, year: int) -> Decimal:
        """Policy accrual, or the user's standalone lieu counter for Lieu entitlements."""
        resolved = self.policy(entitlement_id, year)
        if resolved.source == PolicySource.missing:
            return ZERO
        if resolved.is_lieu:
            return self.user.lieu_balance
        return resolved.base_amount

    def lieu_allowance(self, entitlement_id: str, year: int) -> Decimal:
        """Lieu days earned from weekend holidays under the lieu weekend rule."""
        if not self.policy(entitlement_id, year).is_lieu:
            return ZERO
        return count_lieu_credits(self.holiday_configs, self.user, year)

    def inbound_carry_over(
        self,
        entitlement_id: str,
        year: int,
        depth: int = 0,
    ) -> list[CarryOverContribution]:
        """Carry-over flowing into (entitlement, year) from year - 1, after expiry."""
        key = (entitlement_id, year, depth)
        if key in self._inbound:
            return self._inbound[key]

        prior_year = year - 1
        pending: list[tuple[date, CarryOverContribution]] = []
        for prior in self.user.policies_for_year(prior_year):
            if not prior.is_active or not prior.carry_over.enabled:
                continue
            target = prior.carry_over.target_entitlement_id or prior.entitlement_id
            if target != entitlement_id:
                continue
            if prior.entitlement_id not in self.entitlements:
                # Reported by check_references / policy(); contributes nothing
                self.policy(prior.entitlement_id, prior_year)
                continue

            prior_total = self.total_allowance(prior.entitlement_id, prior_year, depth + 1)
            prior_used = self.usage.used(prior.entitlement_id, prior_year)
            eligible = resolve_carry_over(prior, prior_total, prior_used)
            expires_on = carry_over_expiry_date(prior, year)
            pending.append((
                expires_on or _NO_EXPIRY,
                CarryOverContribution(
                    source_entitlement_id=prior.entitlement_id,
                    source_year=prior_year,
                    eligible=eligible,
                    counted=eligible,
                    expires_on=expires_on,
                    expiry_label=expiry_label(prior),
                ),
            ))

        # Earliest-expiring carry-over is consumed first
        pending.sort(key=lambda item: item[0])
        kept_after_expiry = ZERO
        contributions: list[CarryOverContribution] = []
        for _, contribution in pending:
            expires_on = contribution.expires_on
            if expires_on is not None and self.as_of is not None and self.as_of >= expires_on:
                used_before = self.usage.used(entitlement_id, year, until=expires_on)
                counted = enforce_carry_over_expiry(
                    contribution.eligible,
                    expires_on,
                    self.as_of,
                    used_before - kept_after_expiry,
                )
                kept_after_expiry += counted
                contribution = contribution.model_copy(update={"counted": counted})
            contributions.append(contribution)

        self._inbound[key] = contributions
        return contributions

    def total_allowance(self, entitlement_id: str, year: int, depth: int = 0) -> Decimal:
        """Total days available; ``UNLIMITED`` (Decimal infinity) for unlimited entitlements."""
        if depth > self.max_depth:
            self.warn(CycleAbortedWarning(
                f"Carry-over chain into '{entitlement_id}' {year} exceeds depth "
                f"{self.max_depth}; earlier years contribute 0."
            ))
            return ZERO

        key = (entitlement_id, year, depth)
        if key in self._totals:
            return self._totals[key]

        if self.policy(entitlement_id, year).is_unlimited:
            total = UNLIMITED
        else:
            carried = sum(
                (c.counted for c in self.inbound_carry_over(entitlement_id, year, depth)),
                ZERO,
            )
            total = (
                self.base_allowance(entitlement_id, year)
                + self.lieu_allowance(entitlement_id, year)
                + carried
            )

        logger.debug(
            "total_allowance(%s, %s, depth=%d) = %s", entitlement_id, year, depth, total,
        )
        self._totals[key] = total
        return total

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    def _accrued_to_date(self, resolved: ResolvedPolicy, year: int) -> Optional[Decimal]:
        if resolved.source != PolicySource.policy or resolved.accrual.period != AccrualPeriod.monthly:
            return None
        return resolved.accrual.amount * months_elapsed(year, self.as_of) / 12

    def balance(self, entitlement_id: str, year: int) -> BalanceOut:
        """Allowance, usage and breakdown of one entitlement in one year."""
        resolved = self.policy(entitlement_id, year)
        entitlement = self.entitlements.get(entitlement_id)
        out = BalanceOut(
            entitlement_id=entitlement_id,
            name=entitlement.name if entitlement else "Unknown",
            category=entitlement.category if entitlement else None,
            color=entitlement.color if entitlement else EntitlementColor.gray,
            year=year,
            policy_source=resolved.source,
            used=self.usage.used(entitlement_id, year),
        )

        if resolved.is_unlimited:
            out.is_unlimited = True
            return out

        contributions = self.inbound_carry_over(entitlement_id, year)
        with_expiry = next((c for c in contributions if c.expiry_label), None)
        out.breakdown = BalanceBreakdown(
            base=self.base_allowance(entitlement_id, year),
            carry_over=sum((c.counted for c in contributions), ZERO),
            lieu_base=self.lieu_allowance(entitlement_id, year),
            accrued_to_date=self._accrued_to_date(resolved, year),
            forfeited=sum((c.eligible - c.counted for c in contributions), ZERO),
            expiry_label=with_expiry.expiry_label if with_expiry else "",
            expires_on=with_expiry.expires_on if with_expiry else None,
            contributions=contributions,
        )
        out.allowance = self.total_allowance(entitlement_id, year)
        out.remaining = out.allowance - out.used
        return out
