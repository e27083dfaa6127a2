"""
Field reconciliation across documents and extraction sources.

Selection is a strict source priority (mrz > barcode > ocr > inferred >
manual). A lower source only replaces a higher one that is absent, or one
that failed its check digit when the lower source is at least as confident.
Agreeing sources raise the confidence of the selected value; disagreeing ones
are recorded as issues and never change the value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from docverify.config import Settings, settings as default_settings
from docverify.models.fields import CORE_FIELDS, FIELD_LABELS, ExtractedField, FieldSource
from docverify.text import fold

logger = logging.getLogger(__name__)

SOURCE_PRIORITY: tuple[FieldSource, ...] = (
    FieldSource.MRZ,
    FieldSource.BARCODE,
    FieldSource.OCR,
    FieldSource.INFERRED,
    FieldSource.MANUAL,
    FieldSource.UNKNOWN,
)


def _best_per_source(candidates: list[ExtractedField]) -> list[ExtractedField]:
    """Highest confidence candidate of each source, ordered by source priority."""
    best: dict[FieldSource, ExtractedField] = {}
    for candidate in candidates:
        current = best.get(candidate.source)
        if current is None or candidate.confidence > current.confidence:
            best[candidate.source] = candidate
    return [best[source] for source in SOURCE_PRIORITY if source in best]


def _select(ranked: list[ExtractedField]) -> ExtractedField:
    selected = ranked[0]
    for lower in ranked[1:]:
        if not selected.checksum_failed:
            break
        if lower.confidence >= selected.confidence:
            selected = lower
    return selected


def reconcile_field(
    candidates: list[ExtractedField], *, agreement_boost: int
) -> ExtractedField | None:
    """Pick one value for a field from every candidate extracted for it."""
    present = [candidate for candidate in candidates if candidate.present]
    if not present:
        return None

    ranked = _best_per_source(present)
    selected = _select(ranked)
    others = [candidate for candidate in ranked if candidate is not selected]

    selected_key = fold(selected.value)
    agreeing = [candidate for candidate in others if fold(candidate.value) == selected_key]
    conflicts = [
        f"Conflicting value '{candidate.value}' from {candidate.source.value}"
        for candidate in others
        if fold(candidate.value) != selected_key
    ]

    confidence = selected.confidence
    # A checksum-failed MRZ value stays at its capped confidence
    if agreeing and not selected.checksum_failed:
        confidence = min(100, max(c.confidence for c in [selected, *agreeing]) + agreement_boost)

    if confidence == selected.confidence and not conflicts:
        return selected
    return selected.model_copy(
        update={"confidence": confidence, "issues": [*selected.issues, *conflicts]}
    )


def reconcile(
    extractions: Iterable[Mapping[str, ExtractedField]],
    *,
    config: Settings | None = None,
) -> dict[str, ExtractedField]:
    """
    Merge per-source field maps into one field per identifier.

    Args:
        extractions: One mapping per (document, source) extraction result
        config: Settings supplying the agreement boost

    Returns:
        Reconciled fields; core identity fields are always present, with a
        null, zero-confidence placeholder when no source found them
    """
    config = config or default_settings

    grouped: dict[str, list[ExtractedField]] = {}
    for extraction in extractions:
        for field_id, field in extraction.items():
            grouped.setdefault(field_id, []).append(field)

    ordered_ids = [field_id for field_id in FIELD_LABELS if field_id in grouped or field_id in CORE_FIELDS]
    ordered_ids += sorted(field_id for field_id in grouped if field_id not in FIELD_LABELS)

    result: dict[str, ExtractedField] = {}
    for field_id in ordered_ids:
        reconciled = reconcile_field(grouped.get(field_id, []), agreement_boost=config.AGREEMENT_BOOST)
        if reconciled is None:
            if field_id not in CORE_FIELDS:
                continue
            reconciled = ExtractedField.missing(field_id)
        result[field_id] = reconciled

    logger.debug(
        "Reconciled %d fields (%d with values)",
        len(result),
        sum(1 for field in result.values() if field.present),
    )
    return result
