"""Audit engine — fans detectors out over files and policies, then aggregates.

Exception safety: detector failures are re-raised as :class:`ScanError`
with a message that never carries matched values, so secrets cannot leak
into tracebacks.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from vulnaudit.config.loader import validate_config
from vulnaudit.config.schema import AuditConfig
from vulnaudit.findings.aggregator import Aggregator, AuditReport
from vulnaudit.findings.models import Finding, ScanWarning, utcnow
from vulnaudit.iam.analyzer import IAMAnalyzer
from vulnaudit.iam.models import IAMPolicy, PolicyParseError, parse_policy
from vulnaudit.rules.registry import RuleCatalog, build_catalog
from vulnaudit.scanner.base import Detector, accepts
from vulnaudit.scanner.patterns import PatternScanner
from vulnaudit.scanner.secrets import SecretsDetector
from vulnaudit.scanner.source import Content, SourceError, SourceFile, SourceModel, TextSourceModel
from vulnaudit.scanner.suppression import Suppression, SuppressionChecker

logger = logging.getLogger(__name__)

PolicyInput = Union[IAMPolicy, Dict[str, Any]]


class ScanError(Exception):
    """Raised on internal scanner error (never contains secret values)."""


class FindingBudget:
    """Thread-safe cap on the number of findings admitted from budgeted detectors."""

    def __init__(self, limit: Optional[int]) -> None:
        self.limit = limit
        self._count = 0
        self._truncated = False
        self._lock = threading.Lock()

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self.limit is not None and self._count >= self.limit

    @property
    def truncated(self) -> bool:
        return self._truncated

    def admit(self, findings: List[Finding]) -> List[Finding]:
        if self.limit is None:
            return findings
        with self._lock:
            room = max(self.limit - self._count, 0)
            admitted = findings[:room]
            self._count += len(admitted)
            if len(admitted) < len(findings):
                self._truncated = True
            return admitted

    def note_skip(self) -> None:
        with self._lock:
            self._truncated = True


@dataclass
class _TaskResult:
    kind: str  # 'file' | 'policy'
    target: str
    findings: List[Finding] = field(default_factory=list)
    suppressed: List[Suppression] = field(default_factory=list)
    warnings: List[ScanWarning] = field(default_factory=list)
    completed: bool = False


def _policy_label(doc: PolicyInput, index: int) -> str:
    if isinstance(doc, IAMPolicy):
        return doc.name
    if isinstance(doc, dict):
        name = doc.get("name") or doc.get("PolicyName") or doc.get("Id")
        if name:
            return str(name)
    return f"policy[{index}]"


def default_detectors(
    config: AuditConfig,
    catalog: RuleCatalog,
    *,
    clock: Callable = utcnow,
) -> List[Detector]:
    """Instantiate the detectors selected by ``config.scan.scan_types``."""
    scan = config.scan
    detectors: List[Detector] = []
    if scan.enabled("owasp"):
        detectors.append(
            PatternScanner(catalog, max_line_length=scan.max_line_length, clock=clock)
        )
    if scan.enabled("secrets"):
        detectors.append(
            SecretsDetector(
                catalog.secret_patterns,
                skip_markers=config.secrets.skip_markers,
                skip_path_markers=config.secrets.skip_path_markers,
                max_line_length=scan.max_line_length,
                clock=clock,
            )
        )
    if scan.enabled("iam"):
        detectors.append(
            IAMAnalyzer(
                catalog.dangerous_actions,
                stale_after_days=config.iam.stale_after_days,
                clock=clock,
            )
        )
    return detectors


class AuditEngine:
    """One configured audit session.

    The catalog and detectors are fixed at construction; build a new engine
    to change configuration.
    """

    def __init__(
        self,
        config: AuditConfig,
        catalog: RuleCatalog,
        *,
        detectors: Optional[Sequence[Detector]] = None,
        source_model: Optional[SourceModel] = None,
        clock: Callable = utcnow,
    ) -> None:
        self.config = validate_config(config)
        self.catalog = catalog
        self.detectors: Tuple[Detector, ...] = tuple(
            detectors if detectors is not None else default_detectors(config, catalog, clock=clock)
        )
        self.source_model: SourceModel = source_model or TextSourceModel()
        self.aggregator = Aggregator(config.scan.severity_threshold, clock=clock)
        self._file_detectors = tuple(d for d in self.detectors if SourceFile in d.target_types)
        self._policy_detectors = tuple(d for d in self.detectors if IAMPolicy in d.target_types)

    @classmethod
    def from_config(
        cls,
        config: Optional[AuditConfig] = None,
        root: Optional[Path] = None,
        **kwargs: Any,
    ) -> "AuditEngine":
        """Build the catalog (built-in + custom rules under *root*) and the engine."""
        cfg = validate_config(config or AuditConfig())
        return cls(cfg, build_catalog(cfg, root), **kwargs)

    # ---- exclusions ----

    def is_excluded(self, path: str) -> bool:
        """True when an exclusion glob matches *path* or any trailing part of it.

        ``node_modules/*`` therefore excludes ``web/node_modules/x.js`` too.
        """
        parts = PurePosixPath(path).parts
        suffixes = ["/".join(parts[i:]) for i in range(len(parts))]
        return any(fnmatch(s, g) for g in self.config.scan.exclusions for s in suffixes)

    # ---- run ----

    def run(
        self,
        files: Iterable[Tuple[str, Content]] = (),
        policies: Iterable[PolicyInput] = (),
        *,
        scope: str = "codebase",
        extra_warnings: Iterable[ScanWarning] = (),
    ) -> AuditReport:
        """Scan *files* and *policies* and return the aggregated report."""
        start = time.perf_counter()
        scan_cfg = self.config.scan
        warnings: List[ScanWarning] = list(extra_warnings)
        skipped_files: List[str] = []
        tasks: List[Tuple[str, str, Any]] = []

        for path, content in files:
            if self.is_excluded(path):
                skipped_files.append(f"{path} (excluded)")
                continue
            if not self._file_detectors:
                skipped_files.append(f"{path} (no file scan types enabled)")
                continue
            tasks.append(("file", path, content))

        for i, doc in enumerate(policies):
            label = _policy_label(doc, i)
            if not self._policy_detectors:
                warnings.append(ScanWarning("policy", label, "IAM scan type not enabled; policy not analyzed"))
                continue
            tasks.append(("policy", label, doc))

        logger.info(
            "Starting audit of %s: %d file(s), %d polic(ies), %d detector(s)",
            scope,
            sum(1 for t in tasks if t[0] == "file"),
            sum(1 for t in tasks if t[0] == "policy"),
            len(self.detectors),
        )

        cancel = threading.Event()
        budget = FindingBudget(scan_cfg.max_findings)
        results, timed_out = self._execute(tasks, cancel, budget, scan_cfg.timeout)

        streams: List[List[Finding]] = []
        suppressed: List[Suppression] = []
        scanned_files = scanned_policies = 0
        for res in results:
            warnings.extend(res.warnings)
            if not res.completed:
                continue
            streams.append(res.findings)
            suppressed.extend(res.suppressed)
            if res.kind == "file":
                scanned_files += 1
            else:
                scanned_policies += 1

        for kind, label, _ in timed_out:
            warnings.append(ScanWarning("timeout", label, f"{kind} not scanned before the {scan_cfg.timeout}s timeout"))
        if budget.truncated:
            warnings.append(
                ScanWarning(
                    "truncated",
                    scope,
                    f"max_findings={budget.limit} reached; further files were not scanned",
                )
            )

        elapsed = (time.perf_counter() - start) * 1000
        report = self.aggregator.aggregate(
            streams,
            scope=scope,
            warnings=sorted(warnings, key=lambda w: (w.kind, w.target, w.message)),
            skipped_files=skipped_files,
            suppressed=suppressed,
            scanned_files=scanned_files,
            scanned_policies=scanned_policies,
            incomplete=bool(timed_out),
            truncated=budget.truncated,
            duration_ms=round(elapsed, 2),
        )
        logger.info(
            "Audit finished: %d finding(s) kept of %d, risk %.1f%s",
            report.total_findings,
            report.raw_finding_count,
            report.risk_score,
            " (incomplete)" if report.incomplete else "",
        )
        return report

    def _execute(
        self,
        tasks: List[Tuple[str, str, Any]],
        cancel: threading.Event,
        budget: FindingBudget,
        timeout: Optional[float],
    ) -> Tuple[List[_TaskResult], List[Tuple[str, str, Any]]]:
        """Run *tasks* on the worker pool; return (results, tasks not finished in time)."""
        if not tasks:
            return [], []

        executor = ThreadPoolExecutor(
            max_workers=self.config.scan.workers, thread_name_prefix="vulnaudit"
        )
        futures: Dict[Future, Tuple[str, str, Any]] = {
            executor.submit(self._run_task, task, cancel, budget): task for task in tasks
        }
        deadline = None if timeout is None else time.monotonic() + timeout
        pending = set(futures)
        try:
            while pending:
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_EXCEPTION)
                for fut in done:
                    exc = fut.exception()
                    if exc is not None:
                        raise exc
                if deadline is not None and time.monotonic() >= deadline:
                    break
            if pending:
                logger.warning("Audit timed out; %d task(s) abandoned", len(pending))
        finally:
            if pending:
                # running tasks finish their current target; queued ones never start
                cancel.set()
            executor.shutdown(wait=not pending, cancel_futures=True)

        results = [f.result() for f in futures if f not in pending and not f.cancelled()]
        return results, [futures[f] for f in pending]

    def _run_task(
        self,
        task: Tuple[str, str, Any],
        cancel: threading.Event,
        budget: FindingBudget,
    ) -> _TaskResult:
        kind, label, payload = task
        if cancel.is_set():
            return _TaskResult(kind, label)
        try:
            if kind == "file":
                return self._scan_file(label, payload, budget)
            return self._scan_policy(label, payload)
        except ScanError:
            raise
        except Exception as exc:
            logger.error("Internal error scanning %s (%s)", label, type(exc).__name__)
            raise ScanError(
                f"Internal scanner error on {kind} {label!r}: {type(exc).__name__}. "
                "Matched values have been scrubbed from this error."
            ) from None

    def _scan_file(self, path: str, content: Content, budget: FindingBudget) -> _TaskResult:
        result = _TaskResult("file", path)
        try:
            source = self.source_model.parse(path, content)
        except SourceError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            result.warnings.append(ScanWarning("source", path, str(exc)))
            return result

        checker = SuppressionChecker()
        checker.register_lines(path, source.numbered())

        for detector in self._file_detectors:
            if detector.budgeted and budget.exhausted:
                budget.note_skip()
                continue
            kept: List[Finding] = []
            for finding in detector.scan(source):
                sup = checker.is_suppressed(path, finding.line, finding.rule_id)
                if sup is not None:
                    result.suppressed.append(sup)
                else:
                    kept.append(finding)
            if detector.budgeted:
                kept = budget.admit(kept)
            result.findings.extend(kept)

        result.completed = True
        return result

    def _scan_policy(self, label: str, payload: PolicyInput) -> _TaskResult:
        result = _TaskResult("policy", label)
        if isinstance(payload, IAMPolicy):
            policy = payload
        else:
            try:
                policy = parse_policy(payload)
            except PolicyParseError as exc:
                logger.warning("Skipping policy %s: %s", label, exc)
                result.warnings.append(ScanWarning("policy", label, str(exc)))
                return result

        for detector in self._policy_detectors:
            if accepts(detector, policy):
                result.findings.extend(detector.scan(policy))
        result.completed = True
        return result
