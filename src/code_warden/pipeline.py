"""Scan pipeline: one ordered unit of work per scan per repository.

    previous latest -> findings -> save bundle -> delta -> work documents
    -> escalations -> alerts -> live events

Everything for one repository runs under that repository's lock (a thread
lock inside this process plus the lock file shared with other processes),
so work documents have a single writer and the previous snapshot is read
before the new one lands.  Findings are evaluated before anything is
written: a bundle that cannot be analysed leaves no snapshot behind.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import WardenConfig
from .diff import SnapshotDelta, compute_delta
from .exceptions import (
    InvalidBundleError,
    ScanInProgressError,
    SnapshotCorruptError,
    SnapshotNotFoundError,
)
from .findings import FindingInstance, evaluate_findings, generate_finding_id
from .locking import repo_lock
from .logging_config import get_logger
from .server.events import LiveEvent
from .snapshot import SnapshotBundle, SnapshotStore
from .work import (
    SeverityPolicy,
    WorkDocument,
    WorkStore,
    assign_initial_severity,
    create_work_document,
    detect_escalations,
    record_observation,
    write_alert,
)

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Outcome of one ingested scan."""

    slug: str
    timestamp: str
    delta: Optional[SnapshotDelta]
    findings: List[FindingInstance] = field(default_factory=list)
    created: List[WorkDocument] = field(default_factory=list)
    updated: List[WorkDocument] = field(default_factory=list)
    escalations: List[WorkDocument] = field(default_factory=list)
    alert_paths: List[Path] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "timestamp": self.timestamp,
            "delta": self.delta.to_dict() if self.delta is not None else None,
            "findings": len(self.findings),
            "created": [d.finding_id for d in self.created],
            "updated": [d.finding_id for d in self.updated],
            "escalations": [d.finding_id for d in self.escalations],
        }


class ScanPipeline:
    """Ingests snapshot bundles and keeps work documents in step.

    Usage::

        pipeline = ScanPipeline(config, SnapshotStore(data), WorkStore(data), hub)
        result = pipeline.ingest("web", bundle)
    """

    def __init__(
        self,
        config: WardenConfig,
        store: SnapshotStore,
        work_store: WorkStore,
        hub: Any = None,
    ) -> None:
        self.config = config
        self.store = store
        self.work_store = work_store
        self.hub = hub
        self.policy = SeverityPolicy.from_overrides(config.severity)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, slug: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(slug)
            if lock is None:
                lock = self._locks[slug] = threading.Lock()
            return lock

    def ingest(
        self,
        slug: str,
        bundle: SnapshotBundle,
        findings: Optional[List[FindingInstance]] = None,
        blocking: bool = True,
        timestamp: Optional[str] = None,
    ) -> ScanResult:
        """Run one scan through the pipeline.

        Args:
            slug: Configured repository slug
            bundle: The freshly collected snapshot
            findings: Precomputed findings; evaluated from *bundle* if None
            blocking: Wait for a running scan of the same repository
                instead of raising
            timestamp: Explicit snapshot key (defaults to now)

        Raises:
            UnknownRepoError: If *slug* is not configured
            ScanInProgressError: When non-blocking and a scan is running, in
                this process or another one sharing the data directory
            InvalidBundleError: If findings cannot be evaluated from *bundle*;
                nothing is stored in that case
        """
        repo = self.config.repo(slug)
        lock = self._lock_for(slug)
        if not lock.acquire(blocking=blocking):
            raise ScanInProgressError(slug)
        try:
            with repo_lock(self.store.data_dir, slug, blocking=blocking):
                return self._run(slug, repo, bundle, findings, timestamp)
        finally:
            lock.release()

    def _run(self, slug, repo, bundle, findings, timestamp) -> ScanResult:
        try:
            prior = self.store.latest(slug)
        except SnapshotNotFoundError:
            prior = None
        except SnapshotCorruptError as e:
            logger.warning("No delta for %s: %s", slug, e)
            prior = None

        identified = self._identify(slug, repo, bundle, findings)

        key = self.store.save(slug, bundle, timestamp)
        delta = compute_delta(prior.bundle, bundle) if prior is not None else None
        self._emit("snapshot-ready", slug, {"timestamp": key, "sections": bundle.present_sections()})

        findings = [finding for _, finding in identified]
        result = ScanResult(slug=slug, timestamp=key, delta=delta, findings=findings)

        seen: set[str] = set()
        for finding_id, finding in identified:
            if finding_id in seen:
                continue
            seen.add(finding_id)

            doc = self.work_store.load(slug, finding_id)
            if doc is None:
                doc = create_work_document(finding, assign_initial_severity(finding, self.policy))
                result.created.append(doc)
            else:
                observation = record_observation(
                    doc, finding, min_reports=self.config.min_reports_for_change
                )
                if observation.severity_changed:
                    logger.info(
                        "%s: %s -> %s",
                        finding_id,
                        observation.previous_severity.value,
                        observation.severity.value,
                    )
                result.updated.append(doc)
            self.work_store.save(slug, doc)

        changed = result.created + result.updated
        if changed:
            self._emit(
                "work-update",
                slug,
                {"findingIds": [d.finding_id for d in changed], "timestamp": key},
            )

        result.escalations = detect_escalations(
            self.work_store.load_all(slug), self.config.escalation_threshold
        )
        for doc in result.escalations:
            result.alert_paths.append(write_alert(slug, doc, self.store.data_dir))

        self._emit(
            "analysis-ready",
            slug,
            {
                "timestamp": key,
                "findings": len(findings),
                "escalations": [d.finding_id for d in result.escalations],
            },
        )
        logger.info(
            "Ingested %s/%s: %d finding(s), %d new, %d escalated",
            slug,
            key,
            len(seen),
            len(result.created),
            len(result.escalations),
        )
        return result

    def _identify(self, slug, repo, bundle, findings) -> List[tuple]:
        """Evaluate and id every finding, rejecting bundles that cannot be analysed."""
        try:
            if findings is None:
                findings = evaluate_findings(repo, bundle)
            return [(generate_finding_id(finding), finding) for finding in findings]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidBundleError(slug, str(e)) from e

    def _emit(self, event_type: str, slug: str, payload: Dict[str, Any]) -> None:
        if self.hub is None:
            return
        self.hub.broadcast(LiveEvent(event_type, slug, payload))
