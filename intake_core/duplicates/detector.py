"""
Duplicate detection for incoming person records.

Compares an incoming record against a bounded set of existing records
supplied by the caller and reports:
- Exact identifier matches (DUPLICATE_EXACT, high)
- Fuzzy name/identifier matches (SIMILAR_RECORD, medium)
- Provider NPIs registered under a different name (IDENTIFIER_CONFLICT, high)
- Repeat medication orders within a time window (DUPLICATE_ORDER, high)

Scoring uses Jaro-Winkler similarity with weighted fields:
    total = first_name * 0.3 + last_name * 0.5 + identifier_prefix * 0.2

The engine performs no I/O itself. Record-store access is injected as
callables, invoked at most once per call, and their exceptions propagate
unchanged.
"""

import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime, timedelta
from itertools import islice
from typing import Protocol

from intake_core.config import DuplicateDetectionSettings, get_logger, get_settings
from intake_core.duplicates.warnings import (
    RecordWarning,
    WarningKind,
    WarningSeverity,
    sort_warnings,
)
from intake_core.models import (
    CandidateBatch,
    CandidateRecord,
    ExistingOrder,
    ExistingRecord,
    OrderCandidate,
    ProviderRecord,
    SimilarityBreakdown,
)
from intake_core.utils.string_utils import jaro_winkler_similarity, normalize_for_matching
from intake_core.validation.validators import normalize_npi, validate_npi


logger = get_logger(__name__)

FetchCandidates = Callable[[], Iterable[ExistingRecord]]
FindExact = Callable[[str], ExistingRecord | None]
FindProvider = Callable[[str], ProviderRecord | None]
FetchOrders = Callable[[], Iterable[ExistingOrder]]

AsyncFetchCandidates = Callable[[], Awaitable[Iterable[ExistingRecord]]]
AsyncFindExact = Callable[[str], Awaitable[ExistingRecord | None]]
AsyncFindProvider = Callable[[str], Awaitable[ProviderRecord | None]]


class RecordStore(Protocol):
    """Record store operations consumed by the detector."""

    def find_by_exact_identifier(self, identifier: str) -> ExistingRecord | None:
        """Return the record holding exactly this identifier, if any."""
        ...

    def find_recent_candidates(self, limit: int) -> Iterable[ExistingRecord]:
        """Return up to ``limit`` most recently created records."""
        ...


class ProviderDirectory(Protocol):
    """Provider lookup consumed by the identifier conflict check."""

    def find_provider_by_npi(self, npi: str) -> ProviderRecord | None:
        """Return the provider registered under this NPI, if any."""
        ...


class DuplicateDetector:
    """
    Detects duplicate and similar person records.

    Stateless apart from its configuration; one instance may serve
    concurrent callers.

    Example:
        detector = DuplicateDetector()
        warnings = detector.detect(
            candidate,
            fetch_candidates=lambda: store.find_recent_candidates(100),
            find_exact=store.find_by_exact_identifier,
        )
        payload = [w.to_dict() for w in warnings]
    """

    def __init__(self, settings: DuplicateDetectionSettings | None = None) -> None:
        """
        Initialize the detector.

        Args:
            settings: Thresholds and weights; defaults to the application
                settings.
        """
        self.settings = settings or get_settings().duplicate_detection

    @property
    def max_candidates(self) -> int:
        """Maximum number of existing records scored per call."""
        return self.settings.max_candidates

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def calculate_similarity(
        self,
        candidate: CandidateRecord,
        existing: ExistingRecord,
    ) -> SimilarityBreakdown:
        """
        Score an incoming record against an existing one.

        Names are compared case-insensitively in full; identifiers only on
        their first ``identifier_prefix_length`` characters.

        Args:
            candidate: Incoming record.
            existing: Stored record.

        Returns:
            SimilarityBreakdown with per-field and weighted total scores.
        """
        prefix_length = self.settings.identifier_prefix_length

        first_name_score = jaro_winkler_similarity(
            normalize_for_matching(candidate.first_name),
            normalize_for_matching(existing.first_name),
        )
        last_name_score = jaro_winkler_similarity(
            normalize_for_matching(candidate.last_name),
            normalize_for_matching(existing.last_name),
        )
        identifier_score = jaro_winkler_similarity(
            candidate.external_id.strip().lower()[:prefix_length],
            existing.identifier.strip().lower()[:prefix_length],
        )

        total_score = (
            first_name_score * self.settings.first_name_weight
            + last_name_score * self.settings.last_name_weight
            + identifier_score * self.settings.identifier_weight
        )

        return SimilarityBreakdown(
            first_name_score=first_name_score,
            last_name_score=last_name_score,
            identifier_score=identifier_score,
            total_score=min(1.0, max(0.0, total_score)),
        )

    # ------------------------------------------------------------------
    # Detection entry points
    # ------------------------------------------------------------------

    def detect(
        self,
        candidate: CandidateRecord,
        fetch_candidates: FetchCandidates,
        find_exact: FindExact | None = None,
        find_provider: FindProvider | None = None,
    ) -> list[RecordWarning]:
        """
        Detect duplicates of an incoming record.

        Args:
            candidate: Incoming record.
            fetch_candidates: Returns the most recent existing records;
                called exactly once. Results beyond ``max_candidates`` are
                dropped without being read.
            find_exact: Looks up the record holding the candidate's exact
                identifier. When omitted, the fetched records are searched.
            find_provider: Looks up the provider registered under an NPI.
                When omitted, no identifier conflict check is made.

        Returns:
            Warnings ordered by severity, then score. Empty when nothing
            matched.
        """
        started = time.perf_counter()

        exact = None
        identifier = candidate.external_id.strip()
        if find_exact is not None and identifier:
            exact = find_exact(identifier)

        batch = self._bound_candidates(fetch_candidates())

        provider = None
        lookup_npi = self._provider_lookup_key(candidate)
        if find_provider is not None and lookup_npi is not None:
            provider = find_provider(lookup_npi)

        return self._evaluate(candidate, exact, batch, provider, started)

    async def adetect(
        self,
        candidate: CandidateRecord,
        fetch_candidates: AsyncFetchCandidates,
        find_exact: AsyncFindExact | None = None,
        find_provider: AsyncFindProvider | None = None,
    ) -> list[RecordWarning]:
        """
        Detect duplicates using awaitable record-store callables.

        Same semantics as ``detect``; each callable is awaited at most once
        and scoring itself never suspends.
        """
        started = time.perf_counter()

        exact = None
        identifier = candidate.external_id.strip()
        if find_exact is not None and identifier:
            exact = await find_exact(identifier)

        batch = self._bound_candidates(await fetch_candidates())

        provider = None
        lookup_npi = self._provider_lookup_key(candidate)
        if find_provider is not None and lookup_npi is not None:
            provider = await find_provider(lookup_npi)

        return self._evaluate(candidate, exact, batch, provider, started)

    def detect_in_store(
        self,
        candidate: CandidateRecord,
        store: RecordStore,
    ) -> list[RecordWarning]:
        """
        Detect duplicates against a record store.

        Uses the store's provider lookup too when it implements
        ``ProviderDirectory``.
        """
        find_provider = getattr(store, "find_provider_by_npi", None)
        return self.detect(
            candidate,
            fetch_candidates=lambda: store.find_recent_candidates(self.max_candidates),
            find_exact=store.find_by_exact_identifier,
            find_provider=find_provider,
        )

    def find_duplicate_orders(
        self,
        order: OrderCandidate,
        fetch_orders: FetchOrders,
        now: datetime | None = None,
    ) -> list[RecordWarning]:
        """
        Check for repeat orders of the same medication for a patient.

        An existing order is a duplicate when it belongs to the same
        patient, names the same medication (case-insensitive) and was
        created within ``order_window_days``.

        Args:
            order: Incoming order.
            fetch_orders: Returns the patient's existing orders; called once.
            now: Reference time; defaults to the current UTC time.

        Returns:
            One high-severity warning per duplicate, newest first.
        """
        reference = _as_utc(now or datetime.now(UTC))
        window_start = reference - timedelta(days=self.settings.order_window_days)
        medication = normalize_for_matching(order.medication_name)

        duplicates = [
            existing
            for existing in fetch_orders()
            if existing.patient_id == order.patient_id
            and normalize_for_matching(existing.medication_name) == medication
            and _as_utc(existing.created_at) >= window_start
        ]
        duplicates.sort(key=lambda o: _as_utc(o.created_at), reverse=True)

        if duplicates:
            logger.info(
                "duplicate_orders_detected",
                patient_id=order.patient_id,
                count=len(duplicates),
            )

        return [
            RecordWarning(
                kind=WarningKind.DUPLICATE_ORDER,
                severity=WarningSeverity.HIGH,
                message=(
                    f"Order for {existing.medication_name} already exists for this "
                    f"patient (created {_display_date(existing.created_at)})"
                ),
                referenced_record_id=existing.id,
                details={
                    "medication_name": existing.medication_name,
                    "created_at": existing.created_at.isoformat(),
                },
            )
            for existing in duplicates
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bound_candidates(self, records: Iterable[ExistingRecord]) -> CandidateBatch:
        """Take at most ``max_candidates`` records from the fetched set."""
        limit = self.max_candidates
        items = list(islice(records, limit + 1))
        batch = CandidateBatch(records=items[:limit], truncated=len(items) > limit)

        if batch.truncated:
            logger.warning("candidate_set_truncated", limit=limit)

        return batch

    def _provider_lookup_key(self, candidate: CandidateRecord) -> str | None:
        """Return the normalized provider NPI when it is worth looking up."""
        if candidate.referring_provider is None:
            return None
        npi = normalize_npi(candidate.referring_provider.npi)
        if not validate_npi(npi).valid:
            return None
        return npi

    def _evaluate(
        self,
        candidate: CandidateRecord,
        exact: ExistingRecord | None,
        batch: CandidateBatch,
        provider: ProviderRecord | None,
        started: float,
    ) -> list[RecordWarning]:
        """Build the ordered warning list from fetched data."""
        identifier = candidate.external_id.strip()
        warnings: list[RecordWarning] = []

        same_identifier = [
            record
            for record in batch.records
            if identifier and record.identifier.strip() == identifier
        ]
        if exact is None and same_identifier:
            exact = same_identifier[0]

        excluded = {record.id for record in same_identifier}
        if exact is not None:
            warnings.append(self._exact_warning(exact))
            excluded.add(exact.id)

        conflict = self._conflict_warning(candidate, provider)
        if conflict is not None:
            warnings.append(conflict)

        similar = self._similar_warnings(candidate, batch.records, excluded)

        logger.debug(
            "duplicate_check_complete",
            checked=len(batch.records),
            truncated=batch.truncated,
            exact=exact is not None,
            similar=len(similar),
            conflict=conflict is not None,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
        )

        return sort_warnings([*warnings, *similar])

    def _similar_warnings(
        self,
        candidate: CandidateRecord,
        records: list[ExistingRecord],
        excluded: set[str],
    ) -> list[RecordWarning]:
        """Score non-excluded records and keep those above threshold."""
        threshold = self.settings.similarity_threshold
        warnings: list[RecordWarning] = []

        for existing in records:
            if existing.id in excluded:
                continue

            breakdown = self.calculate_similarity(candidate, existing)
            if breakdown.total_score < threshold:
                continue

            warnings.append(
                RecordWarning(
                    kind=WarningKind.SIMILAR_RECORD,
                    severity=WarningSeverity.MEDIUM,
                    message=(
                        f"Similar record found: {existing.full_name} "
                        f"({existing.identifier}) - "
                        f"{round(breakdown.total_score * 100)}% match"
                    ),
                    referenced_record_id=existing.id,
                    score=breakdown.total_score,
                    details={
                        "name": existing.full_name,
                        "identifier": existing.identifier,
                        "breakdown": breakdown.to_dict(),
                    },
                )
            )

        # sorted() is stable, so equal scores keep retrieval order
        return sorted(warnings, key=lambda w: w.score, reverse=True)

    def _exact_warning(self, existing: ExistingRecord) -> RecordWarning:
        """Build the warning for a record sharing the exact identifier."""
        return RecordWarning(
            kind=WarningKind.DUPLICATE_EXACT,
            severity=WarningSeverity.HIGH,
            message=(
                f"A record with identifier {existing.identifier} already exists: "
                f"{existing.full_name}"
            ),
            referenced_record_id=existing.id,
            details={
                "name": existing.full_name,
                "identifier": existing.identifier,
            },
        )

    def _conflict_warning(
        self,
        candidate: CandidateRecord,
        provider: ProviderRecord | None,
    ) -> RecordWarning | None:
        """Flag an NPI registered to a differently named provider."""
        reference = candidate.referring_provider
        if provider is None or reference is None:
            return None

        if normalize_for_matching(provider.name) == normalize_for_matching(reference.name):
            return None

        npi = normalize_npi(reference.npi)
        logger.warning("provider_npi_conflict", provider_id=provider.id)

        return RecordWarning(
            kind=WarningKind.IDENTIFIER_CONFLICT,
            severity=WarningSeverity.HIGH,
            message=(
                f'NPI {npi} is registered to "{provider.name}". '
                f'You entered "{reference.name}".'
            ),
            referenced_record_id=provider.id,
            details={
                "npi": npi,
                "expected_name": provider.name,
                "actual_name": reference.name,
            },
        )


def _display_date(value: datetime) -> str:
    """Format a date as "Oct 5, 2024"."""
    return f"{value:%b} {value.day}, {value.year}"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def detect_duplicates(
    candidate: CandidateRecord,
    fetch_candidates: FetchCandidates,
    *,
    find_exact: FindExact | None = None,
    find_provider: FindProvider | None = None,
    settings: DuplicateDetectionSettings | None = None,
) -> list[RecordWarning]:
    """
    Detect duplicates of an incoming record.

    Convenience function for one-off detection; see
    ``DuplicateDetector.detect``.

    Example:
        warnings = detect_duplicates(
            CandidateRecord("Mikey", "Smith", "002346"),
            lambda: store.find_recent_candidates(100),
        )
    """
    detector = DuplicateDetector(settings)
    return detector.detect(
        candidate,
        fetch_candidates,
        find_exact=find_exact,
        find_provider=find_provider,
    )
