"""
Verification engine: fan-out extraction per document, then reconcile,
validate, decide and assemble the response.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from opentelemetry import trace

from docverify.config import Settings, settings as default_settings
from docverify.decision import decide, recommend_actions
from docverify.exceptions import DocumentAcquisitionError
from docverify.extraction.barcode import BarcodeParser
from docverify.extraction.free_text import FreeTextExtractor
from docverify.models.fields import DocumentSource, ExtractedField, RawDocument
from docverify.models.mrz import MrzBlock
from docverify.models.policy import DEFAULT_POLICY, ApplicantProfile, EligibilityPolicy, load_policy
from docverify.models.report import (
    BarcodeResult,
    DecisionStatus,
    EligibilityDecision,
    ValidationCheck,
    VerificationResponse,
)
from docverify.mrz.layouts import LAYOUTS_BY_FORMAT
from docverify.mrz.locator import LocateResult, locate
from docverify.reconciler import reconcile
from docverify.rules import RuleContext, run_rules

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DocumentInput = Union[RawDocument, DocumentSource, Mapping[str, Any]]


@dataclass(frozen=True)
class DocumentExtraction:
    """Everything extracted from one document, before reconciliation."""

    index: int
    lines: list[str]
    mrz: LocateResult
    ocr_fields: dict[str, ExtractedField] = field(default_factory=dict)
    barcode: BarcodeResult | None = None

    def candidates(self) -> list[dict[str, ExtractedField]]:
        maps = [dict(self.mrz.block.fields), self.ocr_fields]
        if self.barcode is not None:
            maps.append(dict(self.barcode.parsed))
        return maps


def base_policy(config: Settings | None = None) -> EligibilityPolicy:
    """The configured YAML policy when one is set, the built-in defaults otherwise."""
    config = config or default_settings
    if config.POLICY_FILE:
        return load_policy(config.POLICY_FILE)
    return DEFAULT_POLICY


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _summary(decision: EligibilityDecision, checks: Sequence[ValidationCheck]) -> str:
    if decision.status is DecisionStatus.APPROVED:
        return f"Approved: all {len(checks)} checks passed"
    if decision.status is DecisionStatus.REJECTED:
        return f"Rejected: {', '.join(decision.reasons)}"
    if decision.status is DecisionStatus.MANUAL_REVIEW:
        return f"Manual review required: {', '.join(decision.reasons)}"
    return "Unknown: no document data could be extracted"


class VerificationEngine:
    """Runs one verification request end to end."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.free_text = FreeTextExtractor(self.config)
        self.barcode = BarcodeParser(self.config)

    async def acquire(self, index: int, document: RawDocument | DocumentSource) -> RawDocument:
        """
        Return the document's OCR output.

        Raises:
            DocumentAcquisitionError: The OCR source timed out or failed
        """
        if isinstance(document, RawDocument):
            return document
        try:
            return await asyncio.wait_for(document.fetch(), timeout=self.config.OCR_TIMEOUT_SECONDS)
        except asyncio.TimeoutError as exc:
            msg = f"timed out after {self.config.OCR_TIMEOUT_SECONDS:.1f}s"
            raise DocumentAcquisitionError(index, TimeoutError(msg)) from exc
        except Exception as exc:
            raise DocumentAcquisitionError(index, exc) from exc

    def extract(self, index: int, document: RawDocument, reference: date) -> DocumentExtraction:
        """Run MRZ, free-text and barcode extraction over one document."""
        lines = list(document.ocr_text)
        located = locate(lines, config=self.config, reference=reference)
        mrz_lines = set(located.line_indexes)
        printed = [line for i, line in enumerate(lines) if i not in mrz_lines]
        ocr_fields = self.free_text.extract(printed, document.ocr_token_confidences)
        barcode = self.barcode.parse(document.decoded_barcode_text, reference=reference)

        logger.debug(
            "Document %d: MRZ %s, %d printed fields, barcode %s",
            index,
            located.block.format.value,
            len(ocr_fields),
            "present" if barcode else "absent",
        )
        return DocumentExtraction(index=index, lines=lines, mrz=located, ocr_fields=ocr_fields, barcode=barcode)

    async def _process(
        self,
        index: int,
        document: RawDocument | DocumentSource,
        reference: date,
        results: list[DocumentExtraction],
    ) -> None:
        try:
            raw = await self.acquire(index, document)
        except DocumentAcquisitionError as e:
            logger.warning("%s: %s; continuing without it", e.error_code, e.message)
            raw = RawDocument()
        results.append(self.extract(index, raw, reference))

    async def _fan_out(
        self,
        documents: Sequence[RawDocument | DocumentSource],
        reference: date,
        budget: float,
    ) -> tuple[list[DocumentExtraction], bool]:
        results: list[DocumentExtraction] = []
        if not documents:
            return results, True

        tasks = [
            asyncio.ensure_future(self._process(index, document, reference, results))
            for index, document in enumerate(documents)
        ]
        done, pending = await asyncio.wait(tasks, timeout=max(budget, 0))
        if pending:
            logger.warning(
                "Request budget exhausted; %d of %d documents not processed",
                len(pending),
                len(tasks),
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()

        return sorted(results, key=lambda extraction: extraction.index), not pending

    @staticmethod
    def _best_mrz(extractions: Sequence[DocumentExtraction]) -> MrzBlock | None:
        detected = [e for e in extractions if e.mrz.block.detected]
        if not detected:
            return None
        best = max(
            detected,
            key=lambda e: (
                e.mrz.block.checksum_valid,
                LAYOUTS_BY_FORMAT[e.mrz.block.format].rank,
                -e.index,
            ),
        )
        return best.mrz.block

    async def evaluate(
        self,
        documents: Sequence[DocumentInput],
        applicant: ApplicantProfile | Mapping[str, Any] | None = None,
        policy: EligibilityPolicy | Mapping[str, Any] | None = None,
        *,
        evaluation_date: date | None = None,
    ) -> VerificationResponse:
        """
        Verify documents against an applicant profile and eligibility policy.

        Args:
            documents: OCR results, OCR sources to fetch, or their JSON form
            applicant: Declared applicant data
            policy: Full policy, partial overrides of the base policy, or None
            evaluation_date: "Today" for date pivots and missing travel dates

        Returns:
            The assembled VerificationResponse; never raises for unreadable,
            slow or missing documents
        """
        start = time.monotonic()
        deadline = start + self.config.REQUEST_BUDGET_SECONDS
        today = evaluation_date or date.today()

        if not isinstance(applicant, ApplicantProfile):
            applicant = ApplicantProfile.model_validate(applicant or {})
        if not isinstance(policy, EligibilityPolicy):
            policy = base_policy(self.config).merged(policy)
        inputs = [
            RawDocument.model_validate(document) if isinstance(document, Mapping) else document
            for document in documents
        ]

        with tracer.start_as_current_span("docverify.evaluate") as span:
            span.set_attribute("docverify.documents", len(inputs))

            extractions, finished = await self._fan_out(inputs, today, deadline - time.monotonic())
            candidates = [c for e in extractions for c in e.candidates()]
            has_data = any(f.present for c in candidates for f in c.values())

            fields = reconcile(candidates, config=self.config)
            mrz = self._best_mrz(extractions)

            checks: list[ValidationCheck] = []
            if has_data:
                ctx = RuleContext(
                    fields=fields,
                    applicant=applicant,
                    policy=policy,
                    evaluation_date=today,
                    mrz=mrz,
                    mrz_degraded=mrz is None and any(e.mrz.degraded for e in extractions),
                    config=self.config,
                )
                # Documents cut off by the budget contribute nothing; the rules still
                # run over the ones that finished
                checks = run_rules(ctx, deadline=deadline if finished else None)
            else:
                logger.info("No candidate fields extracted from %d documents", len(inputs))

            decision = decide(checks, config=self.config)
            actions = recommend_actions(checks)

            present = [f.confidence for f in fields.values() if f.present]
            overall = _round_half_up(sum(present) / len(present)) if present else 0
            barcode = next((e.barcode for e in extractions if e.barcode is not None), None)

            span.set_attribute("docverify.decision", decision.status.value)
            timing_ms = int((time.monotonic() - start) * 1000)
            logger.info(
                "Verification finished: %s (confidence %d, %d checks, %d ms)",
                decision.status.value,
                decision.confidence,
                len(checks),
                timing_ms,
            )

            return VerificationResponse(
                summary=_summary(decision, checks),
                overall_confidence=overall,
                extracted_fields=fields,
                mrz=mrz,
                barcode_data=barcode,
                validation_checks=checks,
                eligibility=decision,
                recommended_actions=actions,
                raw_ocr_text="\n".join(line for e in extractions for line in e.lines),
                timing_ms=timing_ms,
            )


async def evaluate(
    documents: Sequence[DocumentInput],
    applicant: ApplicantProfile | Mapping[str, Any] | None = None,
    policy: EligibilityPolicy | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
    evaluation_date: date | None = None,
) -> VerificationResponse:
    """Verify documents with a one-off engine; see ``VerificationEngine.evaluate``."""
    engine = VerificationEngine(settings)
    return await engine.evaluate(documents, applicant, policy, evaluation_date=evaluation_date)


def evaluate_sync(
    documents: Sequence[DocumentInput],
    applicant: ApplicantProfile | Mapping[str, Any] | None = None,
    policy: EligibilityPolicy | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
    evaluation_date: date | None = None,
) -> VerificationResponse:
    """Blocking wrapper around ``evaluate`` for callers without an event loop."""
    return asyncio.run(
        evaluate(documents, applicant, policy, settings=settings, evaluation_date=evaluation_date)
    )
