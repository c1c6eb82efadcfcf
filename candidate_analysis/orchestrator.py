"""
Candidate analysis orchestration.

Drives a candidate through pending -> analyzing -> completed | failed.

Single candidate (analyze): claim, fetch, extract, check content length,
ask the completion provider, persist the outcome. Stage failures are
recorded on the candidate and returned, never raised.

Batch (analyze_all_pending): acknowledge immediately, then process the
queue on one background thread, one candidate at a time, with a fixed
pause between candidates to stay under the provider's and the target
sites' rate limits. An unexpected exception on one candidate marks it
failed and the loop moves on.
"""

import threading
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from .analysis_requester import AnalysisRequester
from .analysis_utils import quality_band, validate_analysis
from .config import AnalyzerConfig
from .content_extractor import extract_document
from .errors import (
    AnalysisError,
    AnalysisInProgressError,
    CandidateNotFoundError,
    ExtractionError,
)
from .logging_config import get_logger
from .page_fetcher import PageFetcher
from .store import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_UNSET,
    CandidateStore,
    utc_now,
)
from .text_utils import is_blank, is_generic_category

logger = get_logger('orchestrator')

# Statuses picked up by a batch run (failed ones are retried)
QUEUE_STATUSES = (STATUS_UNSET, STATUS_PENDING, STATUS_FAILED)

# Statuses a single-candidate request may start from (completed = re-analysis)
ANALYZE_STATUSES = (STATUS_UNSET, STATUS_PENDING, STATUS_FAILED, STATUS_COMPLETED)


class FixedIntervalPacer:
    """Blocking pause between consecutive batch items."""

    def __init__(self, interval_seconds: float, sleep: Callable[[float], None] = time.sleep):
        self.interval_seconds = interval_seconds
        self.sleep = sleep

    def wait(self) -> None:
        if self.interval_seconds > 0:
            self.sleep(self.interval_seconds)


class CandidateAnalyzer:
    """Landing page analysis workflow for product candidates."""

    def __init__(
        self,
        store: CandidateStore,
        fetcher: PageFetcher,
        requester: AnalysisRequester,
        config: Optional[AnalyzerConfig] = None,
        pacer: Optional[FixedIntervalPacer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.fetcher = fetcher
        self.requester = requester
        self.config = config or AnalyzerConfig()
        self.pacer = pacer or FixedIntervalPacer(self.config.batch_delay_seconds)
        self.clock = clock
        self.batch_thread: Optional[threading.Thread] = None

    def _stale_before(self) -> Optional[datetime]:
        if not self.config.stale_analysis_after_seconds:
            return None
        return self.clock() - timedelta(seconds=self.config.stale_analysis_after_seconds)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _run_stages(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch, extract and analyze one candidate's landing page.

        Returns:
            Dict with final_url and analysis

        Raises:
            AnalysisError: from whichever stage failed first
        """
        # Fail on a missing credential before any network activity
        self.requester.ensure_configured()

        page = self.fetcher.fetch(candidate['source_url'])

        document = extract_document(
            page.html,
            url=page.url,
            final_url=page.final_url,
            max_body_length=self.config.body_text_limit,
        )
        if document.raw_text_length < self.config.min_body_text_length:
            raise ExtractionError(
                f'Insufficient landing page content for analysis '
                f'({document.raw_text_length} characters, need {self.config.min_body_text_length})',
                final_url=page.final_url,
            )

        try:
            analysis = self.requester.request_analysis(document, product_name=candidate.get('name') or '')
        except AnalysisError as e:
            e.final_url = page.final_url
            raise

        return {'final_url': page.final_url, 'analysis': analysis}

    def _record_success(self, candidate: Dict[str, Any], final_url: str,
                        analysis: Dict[str, Any]) -> Dict[str, Any]:
        fields = {
            'resolved_url': final_url,
            'analysis_result': analysis,
            'analysis_status': STATUS_COMPLETED,
            'analysis_error': None,
            'analyzed_at': self.clock(),
        }

        # Backfill only fields nobody has filled in meaningfully
        if is_blank(candidate.get('description')) and analysis.get('shortDescription'):
            fields['description'] = analysis['shortDescription']
        if is_generic_category(candidate.get('category')) and analysis.get('category'):
            fields['category'] = analysis['category']

        return self.store.update_fields(candidate['id'], fields)

    def _record_failure(self, candidate_id: int, message: str,
                        final_url: Optional[str] = None) -> Dict[str, Any]:
        fields = {
            'analysis_status': STATUS_FAILED,
            'analysis_error': message or 'Unknown error',
            'analysis_result': None,
            'resolved_url': final_url,
        }
        return self.store.update_fields(candidate_id, fields)

    # ------------------------------------------------------------------
    # Single candidate
    # ------------------------------------------------------------------
    def analyze(self, candidate_id: int) -> Dict[str, Any]:
        """
        Analyze one candidate's landing page.

        Returns:
            {"success": True, "candidate", "analysis"} on success, or
            {"success": False, "error", "stage", "recoverable", "candidate_id"}
            when the analysis failed.

        Raises:
            CandidateNotFoundError: no candidate with this id
            AnalysisInProgressError: another run holds a fresh claim
        """
        candidate = self.store.find_by_id(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)

        claimed = self.store.claim_for_analysis(
            candidate_id,
            ANALYZE_STATUSES,
            now=self.clock(),
            stale_before=self._stale_before(),
        )
        if not claimed:
            raise AnalysisInProgressError(candidate_id)

        return self._analyze_claimed(candidate)

    def _analyze_claimed(self, candidate: Dict[str, Any]) -> Dict[str, Any]:
        candidate_id = candidate['id']
        logger.info(f"Analyzing candidate #{candidate_id}: {candidate.get('source_url')}")

        try:
            outcome = self._run_stages(candidate)
        except AnalysisError as e:
            logger.warning(f"Analysis failed for candidate #{candidate_id} at {e.stage}: {e.message}")
            self._record_failure(candidate_id, e.message, final_url=getattr(e, 'final_url', None))
            return {
                'success': False,
                'error': e.message,
                'stage': e.stage,
                'recoverable': e.recoverable,
                'candidate_id': candidate_id,
            }
        except Exception as e:
            # Release the claim before the error reaches the caller
            self._record_failure(candidate_id, str(e) or e.__class__.__name__)
            raise

        analysis = outcome['analysis']
        report = validate_analysis(analysis)
        if not report['valid']:
            logger.warning(f"Candidate #{candidate_id}: {'; '.join(report['errors'])}")

        updated = self._record_success(candidate, outcome['final_url'], analysis)
        logger.info(
            f"Analyzed candidate #{candidate_id}: {analysis.get('productName') or candidate.get('name')} "
            f"(quality: {quality_band(analysis.get('overallQuality'))})"
        )
        return {'success': True, 'candidate': updated, 'analysis': analysis}

    def get_analysis(self, candidate_id: int) -> Dict[str, Any]:
        """Analysis-related fields of one candidate."""
        candidate = self.store.find_by_id(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError(candidate_id)

        return {
            'candidate_id': candidate['id'],
            'name': candidate['name'],
            'source_url': candidate['source_url'],
            'resolved_url': candidate['resolved_url'],
            'analysis_status': candidate['analysis_status'] or STATUS_UNSET,
            'analysis_error': candidate['analysis_error'],
            'analyzed_at': candidate['analyzed_at'],
            'analysis': candidate['analysis_result'],
        }

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------
    def queued_candidates(self) -> List[Dict[str, Any]]:
        """Candidates a batch run would process, newest first."""
        return self.store.find_many_by_status_in(QUEUE_STATUSES, stale_before=self._stale_before())

    def analyze_all_pending(self, background: bool = True) -> Dict[str, Any]:
        """
        Queue every unanalyzed or failed candidate for analysis.

        Returns the acknowledgment right away; the batch itself runs on a
        daemon thread unless background is False.
        """
        candidates = self.queued_candidates()
        if not candidates:
            logger.info("No candidates to analyze")
            return {'success': True, 'queued_count': 0}

        queued_ids = [candidate['id'] for candidate in candidates]
        logger.info(f"Queued {len(queued_ids)} candidates for analysis")

        if background:
            self.batch_thread = threading.Thread(
                target=self.run_batch,
                args=(queued_ids,),
                name='candidate-analysis-batch',
                daemon=True,
            )
            self.batch_thread.start()
        else:
            self.run_batch(queued_ids)

        return {'success': True, 'queued_count': len(queued_ids), 'queued_ids': queued_ids}

    def run_batch(self, candidate_ids: Iterable[int]) -> Dict[str, int]:
        """
        Process candidates strictly one after another.

        Returns:
            Dict with total, completed, failed and skipped counts
        """
        candidate_ids = list(candidate_ids)
        summary = {'total': len(candidate_ids), 'completed': 0, 'failed': 0, 'skipped': 0}

        for position, candidate_id in enumerate(candidate_ids):
            try:
                status = self._process_queued(candidate_id)
            except Exception as e:
                logger.exception(f"Error processing candidate #{candidate_id}")
                try:
                    self._record_failure(candidate_id, str(e) or e.__class__.__name__)
                except Exception:
                    logger.exception(f"Could not record failure for candidate #{candidate_id}")
                status = STATUS_FAILED

            summary[status] += 1

            if position < len(candidate_ids) - 1:
                self.pacer.wait()

        logger.info(
            f"Landing page analysis batch complete. Processed {summary['total']} candidates "
            f"({summary['completed']} completed, {summary['failed']} failed, {summary['skipped']} skipped)"
        )
        return summary

    def _process_queued(self, candidate_id: int) -> str:
        """Analyze one queued candidate; returns completed, failed or skipped."""
        candidate = self.store.find_by_id(candidate_id)
        if candidate is None:
            return 'skipped'

        claimed = self.store.claim_for_analysis(
            candidate_id,
            QUEUE_STATUSES,
            now=self.clock(),
            stale_before=self._stale_before(),
        )
        if not claimed:
            return 'skipped'

        result = self._analyze_claimed(candidate)
        return STATUS_COMPLETED if result['success'] else STATUS_FAILED
