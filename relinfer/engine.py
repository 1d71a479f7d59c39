# ==============================================
# RelationshipInferenceEngine — Orchestrator
# ==============================================
#
# PURPOSE:
#   This is the MAIN CLASS that ties the topics together into one
#   analysis run. Callers hand it a read-only DataAccessPort and get
#   back an AnalysisReport. It holds no state between runs.
#
# HOW IT CONNECTS THE TOPICS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │               RelationshipInferenceEngine                │
#   │                                                          │
#   │  DataAccessPort.fetch_table  (parallel, per table)       │
#   │                 │ SourceTable (Topic 1 normalized)        │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 2: ANALYSIS                            │        │
#   │  │  Collector ║ SchemaExtractor  (concurrent)   │        │
#   │  │  fetch_key_set per table      (parallel)     │        │
#   │  │  Detector per ordered pair    (parallel)     │        │
#   │  │  Classifier → Validator → Scorer per cand.   │        │
#   │  │  Reconciler                                  │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 3: PLANNING                            │        │
#   │  │  ForeignKeyPlanner → one placement per rec.  │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 ▼                                        │
#   │            AnalysisReport                                │
#   └──────────────────────────────────────────────────────────┘
#
# CLASS: RelationshipInferenceEngine
# ----------------------------------
#
#   Constructor:
#   ------------
#   - __init__(data_access, config=None, thresholds=None, progress_sink=None)
#
#   Public Methods:
#   ---------------
#   - analyze(table_ids=None, cancel_event=None) -> AnalysisReport
#
#   Failure policy:
#   ---------------
#   - A table that cannot be read, or a pair whose target key set cannot
#     be read, is skipped; the reason goes to potentialIssues.
#   - No readable table at all → DataAccessError propagates.
#   - InternalInvariantError always propagates.
#   - Cancellation is checked before each table and each pair. Pairs
#     run in waves of max_workers, so a cancel stops every later wave.
#     Whatever was gathered still goes through the CPU-only stages and
#     the report comes back with cancelled=True.
#   - Cross-table validation uses every record id of the target; only
#     the detector works on the capped key set.
#
#   Results are gathered in submission order, so the report does not
#   depend on thread scheduling.
#
# ==============================================

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from loguru import logger

from relinfer.analysis import (
    CardinalityClassifier,
    ConfidenceScorer,
    CrossTableValidator,
    DataRelationshipDetector,
    FieldStatisticsCollector,
    InferenceThresholds,
    RelationshipCandidate,
    RelationshipReconciler,
    RelationshipRecommendation,
    SchemaRelationshipExtractor,
    TableStatistics,
    build_identifier_index,
)
from relinfer.config import AnalysisConfig
from relinfer.errors import DataAccessError
from relinfer.normalization import SourceTable
from relinfer.planning import ForeignKeyPlanner
from relinfer.progress import NullProgressSink, ProgressEvent, ProgressSink, ProgressStatus
from relinfer.report import AnalysisReport
from relinfer.storage.data_access import DataAccessPort


@dataclass
class _RunState:
    """Per-run bookkeeping. Only the calling thread writes to it."""
    cancel_event: threading.Event
    issues: List[str] = field(default_factory=list)
    requested_tables: int = 0
    total_pairs: int = 0
    completed_pairs: int = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()


class RelationshipInferenceEngine:
    def __init__(
        self,
        data_access: DataAccessPort,
        config: Optional[AnalysisConfig] = None,
        thresholds: Optional[InferenceThresholds] = None,
        progress_sink: Optional[ProgressSink] = None,
    ):
        self.data_access = data_access
        self.config = config or AnalysisConfig()
        self.thresholds = thresholds or InferenceThresholds()
        self.progress_sink = progress_sink or NullProgressSink()

        self._collector = FieldStatisticsCollector(max_sample=self.config.sample_cap)
        self._extractor = SchemaRelationshipExtractor()
        self._detector = DataRelationshipDetector(self.thresholds)
        self._classifier = CardinalityClassifier(self.thresholds)
        self._validator = CrossTableValidator()
        self._scorer = ConfidenceScorer(
            min_sample_size=self.config.min_sample_size,
            auto_suggest_threshold=self.config.auto_suggest_threshold,
            schema_baseline=self.config.schema_baseline,
        )
        self._reconciler = RelationshipReconciler()
        self._planner = ForeignKeyPlanner(self.config.one_to_one_owner)

    # ======================================
    # Public API
    # ======================================
    def analyze(
        self,
        table_ids: Optional[Sequence[str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisReport:
        """
        Run one full inference pass.

        Args:
            table_ids: Tables to analyse, in order. Defaults to every table
                the data-access port lists.
            cancel_event: Optional cooperative cancellation signal

        Returns:
            The AnalysisReport (partial, with cancelled=True, if cancelled)

        Raises:
            DataAccessError: If not a single table could be read
            InternalInvariantError: On a logic defect (e.g. duplicate keys)
        """
        state = _RunState(cancel_event=cancel_event or threading.Event())
        ids = list(table_ids) if table_ids is not None else list(self.data_access.list_table_ids())
        state.requested_tables = len(ids)
        self._emit(ProgressStatus.STARTED, f"Analyzing {len(ids)} tables")
        logger.info("Starting relationship analysis over {} tables", len(ids))

        with ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="relinfer") as pool:
            tables = self._load_tables(pool, ids, state)
            if not tables and ids and not state.cancelled:
                raise DataAccessError(f"None of the {len(ids)} requested tables could be read")

            table_stats, links = self._collect(pool, tables, state)
            key_sets, key_errors = self._fetch_key_sets(pool, tables, state)
            data_candidates = self._detect(pool, tables, table_stats, key_sets, key_errors, state)
            schema_candidates = self._schema_candidates(links, table_stats, state)
            # The detector works on capped key samples; validation checks
            # against every record id of the target.
            known_ids = {table.name: frozenset(table.record_ids) for table in tables}

            self._emit(ProgressStatus.SCORING, f"Scoring {len(schema_candidates) + len(data_candidates)} candidates")
            schema_recs = self._score_all(pool, schema_candidates, known_ids, state)
            data_recs = self._score_all(pool, data_candidates, known_ids, state)

        reconciled = self._reconciler.reconcile(schema_recs, data_recs)

        self._emit(ProgressStatus.PLANNING, f"Planning placements for {len(reconciled)} relationships")
        planned = self._planner.plan_all(reconciled)

        if state.cancelled:
            state.issues.append(
                f"Analysis cancelled before completion: {len(tables)} of {state.requested_tables} tables "
                f"and {state.completed_pairs} of {state.total_pairs} table pairs were analysed."
            )
            self._emit(ProgressStatus.CANCELLED, "Analysis cancelled; returning partial results")
            logger.warning("Analysis cancelled; returning {} partial recommendations", len(planned))
        else:
            self._emit(ProgressStatus.COMPLETE, f"Found {len(planned)} relationships")
            logger.info("Analysis complete: {} relationships, {} issues", len(planned), len(state.issues))

        return AnalysisReport(
            recommendations=planned,
            total_tables=len(tables),
            potential_issues=list(state.issues),
            cancelled=state.cancelled,
        )

    # ======================================
    # Stage 1: load tables
    # ======================================
    def _load_tables(self, pool: ThreadPoolExecutor, ids: List[str], state: _RunState) -> List[SourceTable]:
        self._emit(ProgressStatus.LOADING_TABLES, f"Loading {len(ids)} tables")
        futures = [(table_id, pool.submit(self._load_table, table_id, state.cancel_event)) for table_id in ids]

        tables: List[SourceTable] = []
        seen_names = set()
        for table_id, future in futures:
            try:
                table = future.result()
            except (DataAccessError, ValueError) as e:
                self._issue(state, f"Could not read table '{table_id}': {e}")
                continue
            if table is None:
                continue  # cancelled before this table started
            if table.name in seen_names:
                self._issue(state, f"Table '{table_id}' skipped: another table is already named '{table.name}'")
                continue
            seen_names.add(table.name)

            if table.malformed_value_count:
                state.issues.append(
                    f"Table '{table.name}': {table.malformed_value_count} malformed values were treated as null"
                )
            if table.malformed_record_count:
                state.issues.append(
                    f"Table '{table.name}': {table.malformed_record_count} malformed records were skipped"
                )
            tables.append(table)

        logger.info("Loaded {} of {} tables", len(tables), len(ids))
        return tables

    def _load_table(self, table_id: str, cancel_event: threading.Event) -> Optional[SourceTable]:
        if cancel_event.is_set():
            return None
        table = self.data_access.fetch_table(table_id)
        logger.debug("Loaded table '{}' ({} records)", table.name, len(table.records))
        return table

    # ======================================
    # Stage 2: statistics + declared links
    # ======================================
    def _collect(self, pool: ThreadPoolExecutor, tables: List[SourceTable], state: _RunState):
        self._emit(ProgressStatus.COLLECTING_STATISTICS, f"Collecting field statistics for {len(tables)} tables")
        identifier_index = build_identifier_index(tables)

        links_future = pool.submit(self._extractor.extract, tables)
        stats_futures = [pool.submit(self._collector.collect, table, identifier_index) for table in tables]
        self._emit(ProgressStatus.EXTRACTING_SCHEMA, "Extracting declared link fields")

        table_stats: Dict[str, TableStatistics] = {}
        for table, future in zip(tables, stats_futures):
            stats = future.result()
            table_stats[table.name] = stats
            self._unidentified_reference_issues(table, stats, state)

        links = links_future.result()
        logger.info("Collected statistics for {} tables; {} declared links", len(table_stats), len(links))
        return table_stats, links

    def _unidentified_reference_issues(self, table: SourceTable, stats: TableStatistics, state: _RunState) -> None:
        for name, field_stats in stats.fields.items():
            if not field_stats.unidentified_reference_count:
                continue
            definition = table.definition(name)
            is_link = definition is not None and definition.is_link
            if is_link or field_stats.referenced_tables:
                state.issues.append(
                    f"{table.name}.{name}: {field_stats.unidentified_reference_count} sampled references "
                    f"match no record in the analysed tables"
                )

    # ======================================
    # Stage 3: target key sets
    # ======================================
    def _fetch_key_sets(self, pool: ThreadPoolExecutor, tables: List[SourceTable], state: _RunState):
        futures = [
            (table, pool.submit(self._fetch_key_set, table, state.cancel_event))
            for table in tables
        ]

        key_sets: Dict[str, Tuple[str, ...]] = {}
        key_errors: Dict[str, str] = {}
        for table, future in futures:
            try:
                keys = future.result()
            except DataAccessError as e:
                key_errors[table.name] = str(e)
                logger.warning("Key set of '{}' unavailable: {}", table.name, e)
                continue
            if keys is not None:
                key_sets[table.name] = keys
        return key_sets, key_errors

    def _fetch_key_set(self, table: SourceTable, cancel_event: threading.Event) -> Optional[Tuple[str, ...]]:
        if cancel_event.is_set():
            return None
        return tuple(self.data_access.fetch_key_set(table.id, self.config.sample_cap))

    # ======================================
    # Stage 4: pairwise detection
    # ======================================
    def _detect(
        self,
        pool: ThreadPoolExecutor,
        tables: List[SourceTable],
        table_stats: Dict[str, TableStatistics],
        key_sets: Dict[str, Tuple[str, ...]],
        key_errors: Dict[str, str],
        state: _RunState,
    ) -> List[RelationshipCandidate]:
        pairs = [(source, target) for source in tables for target in tables if source.name != target.name]
        state.total_pairs = len(pairs)
        self._emit(ProgressStatus.ANALYZING_RELATIONSHIPS, f"Comparing {len(pairs)} table pairs")

        runnable = []
        for source, target in pairs:
            if target.name in key_errors:
                message = f"Skipped pair {source.name} -> {target.name}: {key_errors[target.name]}"
                self._issue(state, message)
                self._emit(ProgressStatus.WARNING, message)
            elif target.name in key_sets:
                runnable.append((source, target))

        # One wave of at most max_workers pairs at a time, so a cancel
        # raised while a wave is gathered stops every later pair.
        candidates: List[RelationshipCandidate] = []
        wave_size = self.config.max_workers
        for start in range(0, len(runnable), wave_size):
            if state.cancelled:
                break
            futures = [
                pool.submit(
                    self._detect_pair,
                    table_stats[source.name],
                    target,
                    key_sets[target.name],
                    state.cancel_event,
                )
                for source, target in runnable[start:start + wave_size]
            ]
            for future in futures:
                found = future.result()
                if found is None:
                    continue  # cancelled before this pair started
                candidates.extend(found)
                state.completed_pairs += 1
                if state.completed_pairs % self.config.progress_every_pairs == 0:
                    self._emit(
                        ProgressStatus.ANALYZING_RELATIONSHIPS,
                        f"Analyzed {state.completed_pairs}/{state.total_pairs} table pairs",
                    )

        logger.info(
            "Pairwise detection: {} candidates from {}/{} pairs",
            len(candidates), state.completed_pairs, state.total_pairs,
        )
        return candidates

    def _detect_pair(
        self,
        source_stats: TableStatistics,
        target: SourceTable,
        target_keys: Tuple[str, ...],
        cancel_event: threading.Event,
    ) -> Optional[List[RelationshipCandidate]]:
        if cancel_event.is_set():
            return None
        return self._detector.detect_pair(source_stats, target.name, target_keys, target.id)

    # ======================================
    # Stage 5: candidates → recommendations
    # ======================================
    def _schema_candidates(self, links, table_stats: Dict[str, TableStatistics], state: _RunState):
        candidates: List[RelationshipCandidate] = []
        seen = set()
        for link in links:
            stats = table_stats[link.source_table].get(link.source_field)
            candidate = link.to_candidate(stats)
            if candidate.key in seen:
                self._issue(state, f"Duplicate declared link {link.source_table}.{link.source_field} ignored")
                continue
            seen.add(candidate.key)
            if link.unresolved is not None:
                state.issues.append(str(link.unresolved))
            candidates.append(candidate)
        return candidates

    def _score_all(
        self,
        pool: ThreadPoolExecutor,
        candidates: List[RelationshipCandidate],
        known_ids: Dict[str, FrozenSet[str]],
        state: _RunState,
    ) -> List[RelationshipRecommendation]:
        results = pool.map(lambda candidate: self._score_candidate(candidate, known_ids), candidates)

        recommendations = []
        for recommendation, skip_reason in results:
            if recommendation is None:
                state.issues.append(f"Not scored: {skip_reason}")
                continue
            recommendations.append(recommendation)
        return recommendations

    def _score_candidate(
        self, candidate: RelationshipCandidate, known_ids: Dict[str, FrozenSet[str]]
    ) -> Tuple[Optional[RelationshipRecommendation], Optional[str]]:
        reason = self._scorer.insufficient_sample_reason(candidate)
        if reason is not None:
            logger.info("Skipping {}", reason)
            return None, reason

        decision = self._classifier.classify(candidate)
        validation = self._validator.validate_candidate(candidate, known_ids.get(candidate.target_table, frozenset()))
        recommendation = self._scorer.score(candidate, decision, validation)
        logger.debug(
            "{}.{} -> {} [{}]: {} ({:.4f}, rule {})",
            candidate.source_table, candidate.source_field, candidate.target_table,
            candidate.provenance.value, decision.cardinality.value, recommendation.confidence, decision.rule,
        )
        return recommendation, None

    # ======================================
    # Helpers
    # ======================================
    def _issue(self, state: _RunState, message: str) -> None:
        logger.warning(message)
        state.issues.append(message)

    def _emit(self, status: ProgressStatus, message: str) -> None:
        try:
            self.progress_sink.emit(ProgressEvent(status=status, message=message))
        except Exception as e:
            logger.warning("Progress sink rejected {} event: {}", status.value, e)


__all__ = ["RelationshipInferenceEngine"]
