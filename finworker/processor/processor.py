import hashlib
from dataclasses import replace
from pathlib import Path

from finworker.analytics.rebuild import AnalyticsRebuilder
from finworker.categorization.categorizer import TransactionCategorizer
from finworker.categorization.factory import CategorizerFactory
from finworker.config.settings import Settings
from finworker.database.models import DocumentJobRecord
from finworker.database.repositories.account_repository import AccountRepository
from finworker.database.repositories.analytics_repository import AnalyticsRepository
from finworker.database.repositories.insight_repository import InsightRepository
from finworker.database.repositories.job_repository import JobRepository
from finworker.identity.account_resolver import AccountResolver
from finworker.logging.logger import Log
from finworker.normalization.content_hash import compute_content_hash
from finworker.normalization.detect import detect_document_type
from finworker.normalization.exceptions import (
    ExtractionIncompleteError,
    IntegrityCheckError,
    NormalizationValidationError,
)
from finworker.normalization.insight_builder import build_insight
from finworker.normalization.models import (
    IncompleteExtraction,
    NormalizationResult,
    PayslipMetricsV1,
    StatementMetricsV1,
)
from finworker.normalization.payslip import normalize_payslip
from finworker.normalization.statement import normalize_statement
from finworker.normalization.validator import (
    validate_payslip_metrics,
    validate_statement_metrics,
)
from finworker.pdf.exceptions import PdfExtractionError
from finworker.pdf.factory import PdfExtractorFactory
from finworker.pdf.text_extractor import TextExtractor
from finworker.processor.classifier import classify_candidate
from finworker.processor.exceptions import DocumentRejectedError
from finworker.processor.file_loader import FileLoader
from finworker.processor.models import ProcessOutcome
from finworker.provider.client import ExtractionProviderClient
from finworker.provider.models import FileRef
from finworker.worker.skip import has_required_insight_fields, is_skippable


class Processor:
    """Orchestrates the document processing pipeline for one job.

    Pipeline: skip check -> load -> extract text -> provider -> normalize ->
    categorize -> integrity -> account -> insight -> analytics rebuild.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        file_loader: FileLoader,
        text_extractor: TextExtractor,
        provider: ExtractionProviderClient,
        categorizer: TransactionCategorizer,
        job_repo: JobRepository,
        insight_repo: InsightRepository,
        account_resolver: AccountResolver,
        rebuilder: AnalyticsRebuilder,
    ) -> None:
        self._settings = settings
        self._file_loader = file_loader
        self._text_extractor = text_extractor
        self._provider = provider
        self._categorizer = categorizer
        self._job_repo = job_repo
        self._insight_repo = insight_repo
        self._account_resolver = account_resolver
        self._rebuilder = rebuilder

    def process(self, job: DocumentJobRecord) -> ProcessOutcome:
        """Run the full processing pipeline for a job."""
        Log.info(f"Processing file {job.file_id} for job {job.id}", job_id=job.id, file_id=job.file_id)

        # Step 1: Skip work a previous run already completed
        existing = self._insight_repo.find_latest_for_file(job.user_id, job.file_id)
        if is_skippable(job, existing):
            Log.info(f"Job {job.id}: insight already complete, skipping")
            return ProcessOutcome(status="skipped", insight=existing)
        if job.previous_status == "succeeded":
            Log.warning(f"Job {job.id}: previously succeeded but insight is incomplete, repairing")

        # Step 2: Load file
        raw_bytes = self._file_loader.load(job)
        Log.info(f"Loaded {len(raw_bytes)} bytes for file {job.file_id}")

        # Step 3: Extract text for the candidate type
        try:
            extracted = self._text_extractor.extract_text(raw_bytes)
        except PdfExtractionError as exc:
            raise DocumentRejectedError(f"Unreadable document: {exc}", code="CORRUPT_FILE") from exc
        candidate = classify_candidate(job.original_name, extracted.full_text)
        self._job_repo.record_input(job.id, hashlib.sha256(raw_bytes).hexdigest(), candidate)
        job = replace(job, candidate_type=candidate)
        Log.info(
            f"Extracted {len(extracted.pages)} pages from file {job.file_id}, candidate {candidate}"
        )

        # Step 4: Provider extraction
        payload = self._provider.run(
            self._settings.provider_workflow_id,
            FileRef(filename=job.original_name or job.file_id, content=raw_bytes),
            self._settings.provider_poll_interval_ms,
            self._settings.provider_poll_timeout_ms,
        )

        # Step 5: Normalize
        result = self._normalize(payload.data, payload.document_type)

        # Step 6: Categorize and check integrity
        metadata: dict[str, object] = {
            "provider_document_id": payload.document_id,
            "candidate_type": candidate,
            "original_name": job.original_name,
        }
        if isinstance(result.metrics, StatementMetricsV1):
            categorized = self._categorizer.categorize(result.metrics.transactions)
            result = replace(result, metrics=replace(result.metrics, transactions=categorized))
        if not result.integrity.passed:
            raise IntegrityCheckError(
                f"{result.document_type} integrity check failed: {result.integrity.reason} "
                f"(delta {result.integrity.delta})",
                reason=result.integrity.reason or "integrity_failed",
                delta=result.integrity.delta,
            )

        # Step 7: Account identity
        if isinstance(result.metrics, StatementMetricsV1):
            resolution = self._account_resolver.resolve(job, result.metrics)
            if resolution is not None:
                metadata["account_id"] = resolution.account.id
                metadata["account_type"] = resolution.account.account_type

        # Step 8: Persist insight (deduplicated on content hash + version)
        content_hash = compute_content_hash(payload.raw, self._settings.version_pin)
        insight = build_insight(
            user_id=job.user_id,
            file_id=job.file_id,
            schema_version=self._settings.schema_version,
            content_hash=content_hash,
            result=result,
            metadata={**metadata, "version": self._settings.version_pin},
        )
        if not self._insight_repo.insert_if_absent(insight):
            stored = self._insight_repo.find_by_key(
                job.user_id, job.file_id, self._settings.schema_version, content_hash
            )
            if has_required_insight_fields(stored):
                Log.info(f"Job {job.id}: identical result already stored, nothing to do")
                return ProcessOutcome(status="duplicate", insight=stored)
            Log.warning(f"Job {job.id}: stored insight is incomplete, rebuilding analytics")
            insight = stored or insight

        # Step 9: Rebuild analytics for the affected period
        pay_date = result.metrics.pay_date if isinstance(result.metrics, PayslipMetricsV1) else None
        rebuild = self._rebuilder.rebuild(
            job.user_id,
            period_month=insight.document_month,
            pay_date=pay_date,
            file_id=job.file_id,
        )
        if rebuild.status != "success":
            Log.warning(f"Job {job.id}: analytics rebuild failed: {rebuild.reason}")

        # The file moved out of its previous month, which must drop it
        previous_month = existing.document_month if existing else None
        if previous_month and previous_month != insight.document_month:
            Log.info(f"Job {job.id}: file moved from {previous_month}, rebuilding that month too")
            moved = self._rebuilder.rebuild(job.user_id, period_month=previous_month)
            if moved.status != "success":
                Log.warning(f"Job {job.id}: analytics rebuild of {previous_month} failed: {moved.reason}")
        return ProcessOutcome(status="processed", insight=insight, rebuild=rebuild)

    def _normalize(self, data: dict[str, object], type_hint: str | None) -> NormalizationResult:
        document_type = detect_document_type(data)
        if document_type == "unknown" and type_hint:
            document_type = detect_document_type({"documentType": type_hint})
        if document_type == "unknown":
            raise DocumentRejectedError(
                "Provider result is not a supported document type",
                code="UNSUPPORTED_DOCUMENT_TYPE",
            )

        pepper = self._settings.pii_hash_pepper
        if document_type == "payslip":
            result = normalize_payslip(data, pepper=pepper)
        else:
            result = normalize_statement(data, pepper=pepper)
        if isinstance(result, IncompleteExtraction):
            raise ExtractionIncompleteError(result.message)

        if isinstance(result.metrics, PayslipMetricsV1):
            validation = validate_payslip_metrics(result.metrics)
        else:
            validation = validate_statement_metrics(result.metrics)
        if not validation.ok:
            raise NormalizationValidationError("; ".join(validation.errors))
        return result


def build_processor(
    settings: Settings,
    provider: ExtractionProviderClient,
    files_root: Path | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    insight_repo = InsightRepository()
    return Processor(
        settings=settings,
        file_loader=FileLoader(files_root=files_root or Path(settings.files_root)),
        text_extractor=PdfExtractorFactory.create(settings),
        provider=provider,
        categorizer=CategorizerFactory.create(settings),
        job_repo=JobRepository(),
        insight_repo=insight_repo,
        account_resolver=AccountResolver(AccountRepository()),
        rebuilder=AnalyticsRebuilder(insight_repo, AnalyticsRepository()),
    )
