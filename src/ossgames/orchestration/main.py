"""High-level orchestration entry point for an ingestion run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config.policies import SourceDescriptor
from ..config.settings import Settings, get_settings
from ..entities.core import CandidateEntry, CanonicalDataset, CanonicalRecord, EnrichedEntry, RunReport
from ..github.client import GitHubClient
from ..github.quota import QuotaGuard
from ..pipeline.deduplication import Deduplicator
from ..pipeline.enrichment import EnrichmentProcessor
from ..pipeline.extraction import EntryExtractor
from ..pipeline.filtering import CandidateFilter
from ..pipeline.merge import (
    DatasetError,
    MergeAssembler,
    language_distribution,
    load_resource_keys,
    read_dataset,
    write_curated,
    write_dataset,
    write_report,
)
from ..sources.adapters import iter_blocks
from ..sources.http import PageFetcher
from ..sources.models import AdapterContext, AdapterMetrics, SourceAPI, TextFetcher
from ..utils.logging import get_logger, log_timing, run_context, source_context

_LOGGER = get_logger(module=__name__)


class FatalPipelineError(RuntimeError):
    """A mandatory input could not be read or the output could not be written."""


@dataclass
class RunOptions:
    """Caller-selected behaviour for one run."""

    sources: Sequence[str] | None = None
    limit: int | None = None
    enrich: bool = True
    dataset_path: Path | None = None
    output_path: Path | None = None
    existing_paths: Sequence[Path] = ()
    require_dataset: bool = False
    report_path: Path | None = None
    report_format: str = "json"
    curated_path: Path | None = None
    dry_run: bool = False
    run_id: str | None = None


@dataclass(slots=True)
class RunResult:
    report: RunReport
    dataset: CanonicalDataset
    added: List[CanonicalRecord] = field(default_factory=list)
    output_path: Path | None = None
    report_path: Path | None = None
    curated_path: Path | None = None


def new_run_id() -> str:
    """Timestamp run id, also used to name the run log file."""

    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


class IngestionOrchestrator:
    """Runs sources in configured order through every pipeline stage.

    Sources are extracted, filtered and deduplicated one at a time; the
    accepted entries of all sources are then enriched together and merged
    into the canonical dataset, which is read once and written once.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        fetcher: TextFetcher,
        api_client: SourceAPI,
        sleeper: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._settings = settings
        self._policies = settings.policies
        self._fetcher = fetcher
        self._api = api_client
        self._sleeper = sleeper
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionOrchestrator":
        policies = settings.policies
        fetcher = PageFetcher(policies.http)
        client = GitHubClient(policies.enrichment, token=settings.github_token)
        if not client.authenticated:
            _LOGGER.warning(
                "No API token found; unauthenticated quota applies",
                env_var=policies.enrichment.token_env_var,
            )
        return cls(settings=settings, fetcher=fetcher, api_client=client)

    def close(self) -> None:
        for resource in (self._fetcher, self._api):
            closer = getattr(resource, "close", None)
            if callable(closer):
                closer()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _load_inputs(
        self, options: RunOptions, dataset_path: Path, report: RunReport
    ) -> tuple[CanonicalDataset, frozenset[str]]:
        try:
            loaded = read_dataset(dataset_path, required=options.require_dataset)
            dataset = loaded.dataset
            context_keys = set(dataset.keys())
            if loaded.dropped_rows:
                report.dataset_rows_dropped = loaded.dropped_rows
                context_keys |= load_resource_keys(dataset_path)
            for extra in options.existing_paths:
                context_keys |= load_resource_keys(extra)
        except DatasetError as exc:
            raise FatalPipelineError(str(exc)) from exc
        return dataset, frozenset(context_keys)

    def collect_source(
        self,
        source: SourceDescriptor,
        deduplicator: Deduplicator,
        report: RunReport,
        *,
        limit: int | None = None,
    ) -> List[CandidateEntry]:
        """Extract, filter and deduplicate one source; return accepted entries."""

        source_report = report.for_source(source.name)
        metrics = AdapterMetrics()
        ctx = AdapterContext(
            fetcher=self._fetcher,
            api=self._api,
            policies=self._policies,
            metrics=metrics,
        )
        extractor = EntryExtractor(self._policies.extraction, search_policy=self._policies.search)
        candidate_filter = CandidateFilter(self._policies.filtering, extraction_policy=self._policies.extraction)

        candidates = list(extractor.iter_entries(iter_blocks(source, ctx)))
        accepted, rejected = candidate_filter.apply(candidates)
        outcome = deduplicator.process_source(source.name, accepted, limit=limit)

        source_report.parsed += len(candidates)
        source_report.invalid += len(rejected)
        source_report.duplicates += outcome.duplicates
        source_report.capped += outcome.capped
        source_report.fetch_failures += metrics.units_failed
        _LOGGER.info(
            "Source processed",
            kind=source.kind.value,
            parsed=len(candidates),
            invalid=len(rejected),
            duplicates=outcome.duplicates,
            accepted=len(outcome.accepted),
            capped=outcome.capped,
            fetch_failures=metrics.units_failed,
        )
        return outcome.accepted

    def enrich(self, candidates: Sequence[CandidateEntry], report: RunReport, *, enabled: bool) -> List[EnrichedEntry]:
        if not enabled:
            _LOGGER.info("Enrichment skipped", candidates=len(candidates))
            return EnrichmentProcessor.passthrough(candidates)

        client = self._api
        quota_policy = self._policies.enrichment
        quota = QuotaGuard(
            client if hasattr(client, "get_rate_limit") else None,
            threshold=quota_policy.quota_threshold,
            reset_margin_seconds=quota_policy.reset_margin_seconds,
            clock=self._clock,
            sleeper=self._sleeper,
        )
        listens = hasattr(client, "add_quota_listener") and hasattr(client, "remove_quota_listener")
        if listens:
            client.add_quota_listener(quota.observe)
        processor = EnrichmentProcessor(client, quota_policy, quota=quota, sleeper=self._sleeper)
        try:
            with log_timing("enrichment", logger_=_LOGGER):
                result = processor.process(candidates)
        finally:
            if listens:
                client.remove_quota_listener(quota.observe)
        for error in result.errors:
            report.record_error(error)
        for entry in result.entries:
            if entry.enrichment_status == "not_found":
                report.for_source(entry.source_id).not_found += 1
        _LOGGER.info("Enrichment finished", **result.metrics.as_dict())
        return result.entries

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def run(self, options: RunOptions | None = None) -> RunResult:
        opts = options or RunOptions()
        run_id = opts.run_id or new_run_id()
        try:
            sources = self._policies.select_sources(opts.sources)
        except KeyError as exc:
            raise FatalPipelineError(str(exc.args[0])) from exc
        dataset_path = Path(opts.dataset_path or self._settings.dataset_file)
        output_path = Path(opts.output_path or dataset_path)

        report = RunReport(
            run_id=run_id,
            policy_version=self._policies.policy_version,
            enrichment_enabled=opts.enrich,
        )

        with run_context(run_id):
            dataset, context_keys = self._load_inputs(opts, dataset_path, report)
            deduplicator = Deduplicator(context_keys)
            _LOGGER.info(
                "Starting run",
                sources=[source.name for source in sources],
                existing=dataset.total_games,
                dedup_context=len(context_keys),
            )

            accepted: List[CandidateEntry] = []
            for source in sources:
                with source_context(source.name):
                    accepted.extend(self.collect_source(source, deduplicator, report, limit=opts.limit))

            enriched = self.enrich(accepted, report, enabled=opts.enrich)
            merged = MergeAssembler(self._policies.merge).assemble(dataset, enriched, errors=report.errors)
            for collision in merged.collisions:
                report.record_error(collision)
            for record in merged.added:
                report.for_source(record.source_id).new += 1
            report.finished_at = datetime.now(timezone.utc)

            result = RunResult(report=report, dataset=merged.dataset, added=merged.added)
            try:
                if not opts.dry_run:
                    result.output_path = write_dataset(merged.dataset, output_path)
                if opts.report_path:
                    result.report_path = write_report(
                        report, merged.added, opts.report_path, fmt=opts.report_format
                    )
                if opts.curated_path:
                    result.curated_path = write_curated(merged.added, opts.curated_path, self._policies.merge)
            except (DatasetError, OSError) as exc:
                raise FatalPipelineError(f"Unable to write output: {exc}") from exc

            self._log_summary(result)
        return result

    def _log_summary(self, result: RunResult) -> None:
        totals = result.report.totals()
        _LOGGER.info("Run complete", total_records=result.dataset.total_games, **totals)
        top_n = self._policies.merge.summary_top_n
        if top_n and result.added:
            for record in sorted(result.added, key=lambda item: item.stars, reverse=True)[:top_n]:
                _LOGGER.info("New entry", title=record.title, stars=record.stars, source=record.source_id)
            _LOGGER.info("Language distribution", languages=language_distribution(result.added))


def run_ingestion(
    options: RunOptions | None = None,
    *,
    settings: Optional[Settings] = None,
    orchestrator: Optional[IngestionOrchestrator] = None,
) -> RunResult:
    """Run the pipeline end to end with settings-derived collaborators."""

    cfg = settings or get_settings()
    owned = orchestrator is None
    runner = orchestrator or IngestionOrchestrator.from_settings(cfg)
    try:
        return runner.run(options)
    finally:
        if owned:
            runner.close()


__all__ = [
    "FatalPipelineError",
    "IngestionOrchestrator",
    "RunOptions",
    "RunResult",
    "new_run_id",
    "run_ingestion",
]
