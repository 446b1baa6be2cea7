from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from compliance.carriers import find_carrier
from compliance.compensation_rules import RuleContext, RuleOutcome, apply_rule, money
from compliance.confidence import ConfidenceAssessment, ConfidenceScorer, VerificationInput, clamp_to_band
from compliance.distance import DistanceResolver
from compliance.jurisdiction import JurisdictionSelector
from models.schemas import (
    DisruptionCase,
    DistanceBand,
    EligibilityResult,
    RegulationCode,
)
from settings import SETTINGS

logger = logging.getLogger(__name__)


def eur_rates() -> Dict[str, Decimal]:
    # Units of each currency per 1 EUR.
    return {
        "EUR": Decimal("1"),
        "USD": Decimal(str(SETTINGS.fx_usd_per_eur)),
        "GBP": Decimal(str(SETTINGS.fx_gbp_per_eur)),
        "CAD": Decimal(str(SETTINGS.fx_cad_per_eur)),
    }


class EligibilityResultAssembler:
    def __init__(self, rates: Optional[Dict[str, Decimal]] = None):
        self.rates = rates or eur_rates()

    def to_eur(self, amount: Decimal, currency: Optional[str]) -> Decimal:
        rate = self.rates.get((currency or "EUR").upper())
        if rate is None:
            # Unknown currencies rank at face value.
            return amount
        return amount / rate

    def pick_primary(self, outcomes: Sequence[RuleOutcome]) -> RuleOutcome:
        primary = outcomes[0]
        for outcome in outcomes[1:]:
            if not outcome.is_eligible or outcome.amount is None:
                continue
            if not primary.is_eligible or primary.amount is None:
                primary = outcome
                continue
            if self.to_eur(outcome.amount, outcome.currency) > self.to_eur(primary.amount, primary.currency):
                primary = outcome
        return primary

    def assemble(
        self,
        outcomes: Sequence[RuleOutcome],
        band: DistanceBand,
        assessment: ConfidenceAssessment,
        caveats: Optional[List[str]] = None,
    ) -> EligibilityResult:
        caveats = list(caveats or [])
        if assessment.note:
            caveats.append(assessment.note)

        if not outcomes:
            return EligibilityResult(
                is_eligible=False,
                compensation_amount=None,
                currency=None,
                regulation=RegulationCode.NONE,
                confidence=assessment.confidence,
                verification_status=assessment.status,
                reason="Route not covered: no passenger-rights regulation applies to this journey.",
                caveats=caveats,
                distance_band=band,
            )

        primary = self.pick_primary(outcomes)
        rights: List[str] = list(primary.additional_rights)
        for outcome in outcomes:
            if outcome is primary:
                continue
            rights.append(_alternative_basis(outcome))
            for right in outcome.additional_rights:
                if right not in rights:
                    rights.append(right)
        for outcome in outcomes:
            for caveat in outcome.caveats:
                if caveat not in caveats:
                    caveats.append(caveat)

        confidence = clamp_to_band(assessment.confidence + primary.confidence_adjustment, assessment.status)
        amount = money(primary.amount) if primary.is_eligible and primary.amount is not None else None
        return EligibilityResult(
            is_eligible=primary.is_eligible,
            compensation_amount=amount,
            currency=primary.currency if amount is not None else None,
            regulation=primary.regulation.code,
            confidence=confidence,
            verification_status=assessment.status,
            reason=primary.reason,
            additional_rights=rights,
            caveats=caveats,
            distance_band=band,
        )


def _alternative_basis(outcome: RuleOutcome) -> str:
    name = outcome.regulation.code.value
    if outcome.is_eligible and outcome.amount is not None:
        return f"Alternative basis {name}: {money(outcome.amount)} {outcome.currency} ({outcome.reason})"
    return f"Alternative basis {name}: not eligible ({outcome.reason})"


def evaluate(
    case: DisruptionCase,
    verification: VerificationInput = None,
    *,
    resolver: Optional[DistanceResolver] = None,
    selector: Optional[JurisdictionSelector] = None,
    scorer: Optional[ConfidenceScorer] = None,
    assembler: Optional[EligibilityResultAssembler] = None,
) -> EligibilityResult:
    """Run a normalized case through the whole engine.

    The band is resolved once and shared by every applicable regulation. A
    missing or failed verification never prevents a result; it only lowers
    the confidence attached to it.
    """
    resolver = resolver or DistanceResolver()
    selector = selector or JurisdictionSelector()
    scorer = scorer or ConfidenceScorer()
    assembler = assembler or EligibilityResultAssembler()

    carrier = find_carrier(code=case.carrier_code, name=case.airline)
    band, band_caveat = resolver.resolve_or_fallback(case.route.origin, case.route.destination)
    context = RuleContext(
        domestic=resolver.same_country(case.route.origin, case.route.destination),
        large_carrier=carrier.large if carrier is not None else None,
        delay_threshold_minutes=SETTINGS.delay_threshold_minutes,
        claim_window_days=SETTINGS.downgrade_claim_window_days,
    )
    regulations = selector.select(case)
    outcomes = [apply_rule(case, band, regulation, context) for regulation in regulations]
    assessment = scorer.assess(case, verification)

    result = assembler.assemble(outcomes, band, assessment, caveats=[band_caveat] if band_caveat else None)
    logger.info(
        "eligibility_evaluated",
        extra={
            "disruption_type": case.disruption_type.value,
            "route": f"{case.route.origin}-{case.route.destination}",
            "regulation": result.regulation.value,
            "eligible": result.is_eligible,
            "verification_status": result.verification_status.value,
        },
    )
    return result
