"""
Landing Page Analyzer Cloud Functions

Analyzes the landing pages behind product candidates and stores a
structured marketing analysis on each candidate.

Entry points:
- analyze_candidate: analyze one candidate now (synchronous)
- analyze_all_candidates: queue every unanalyzed/failed candidate (background)
- get_candidate_analysis: read a candidate's analysis state
- create_candidates: register one or more candidates

Does NOT:
- Generate articles or video scripts from the analysis
- Schedule batch runs (triggered manually or by an external scheduler)
- Authenticate callers
"""

import functions_framework
import json
import os
import sqlite3
import sys

# Add candidate_analysis package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from candidate_analysis import (
    AnalysisInProgressError,
    AnalysisRequester,
    AnalyzerConfig,
    CandidateAnalyzer,
    CandidateNotFoundError,
    CandidateStore,
    PageFetcher,
)
from candidate_analysis.logging_config import get_logger, setup_logging

# Configuration
CONFIG = AnalyzerConfig.from_env()
setup_logging(CONFIG.log_level)
logger = get_logger('http')

CORS_HEADERS = {'Access-Control-Allow-Origin': '*'}

# Built on first use so a cold start without a database does not crash import
_analyzer = None


def get_analyzer() -> CandidateAnalyzer:
    """Return the process-wide analyzer, building it on first use."""
    global _analyzer
    if _analyzer is None:
        store = CandidateStore(CONFIG.database_path)
        _analyzer = CandidateAnalyzer(
            store=store,
            fetcher=PageFetcher(CONFIG),
            requester=AnalysisRequester(CONFIG),
            config=CONFIG,
        )
    return _analyzer


def _preflight(methods: str):
    headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Methods': methods,
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Max-Age': '3600'
    }
    return ('', 204, headers)


def _respond(body: dict, status: int = 200):
    return (json.dumps(body, default=str), status, CORS_HEADERS)


def _parse_candidate_id(request):
    """Read candidate_id from the JSON body or the query string. Returns int or None."""
    request_json = request.get_json(silent=True) or {}
    args = getattr(request, 'args', None) or {}

    raw_id = request_json.get('candidate_id') if isinstance(request_json, dict) else None
    if raw_id is None:
        raw_id = args.get('candidate_id')

    if isinstance(raw_id, bool):
        return None
    try:
        candidate_id = int(raw_id)
    except (TypeError, ValueError):
        return None
    return candidate_id if candidate_id > 0 else None


@functions_framework.http
def analyze_candidate(request):
    """
    Analyze the landing page of a single candidate.

    Expected JSON input:
    {
        "candidate_id": 42
    }

    Responses:
    - 200 {"success": true, "candidate": {...}, "analysis": {...}}
    - 422 {"success": false, "error": "...", "stage": "fetch", "candidate_id": 42}
      (analysis attempted and failed; the failure is stored on the candidate)
    - 400 invalid id, 404 unknown candidate, 409 analysis already running
    """
    if request.method == 'OPTIONS':
        return _preflight('POST')

    candidate_id = _parse_candidate_id(request)
    if candidate_id is None:
        return _respond({'error': 'Missing or invalid field: candidate_id'}, 400)

    try:
        result = get_analyzer().analyze(candidate_id)
    except CandidateNotFoundError as e:
        return _respond({'error': str(e)}, 404)
    except AnalysisInProgressError as e:
        return _respond({'error': str(e), 'candidate_id': candidate_id}, 409)
    except sqlite3.Error as e:
        logger.error(f"Database error analyzing candidate #{candidate_id}: {e}")
        return _respond({'error': {
            'stage': 'database',
            'message': 'Database unavailable',
            'recoverable': True
        }}, 503)
    except Exception as e:
        logger.exception(f"Error analyzing candidate #{candidate_id}")
        return _respond({'error': {
            'stage': 'processing',
            'message': str(e),
            'recoverable': False
        }}, 500)

    if not result['success']:
        return _respond(result, 422)

    return _respond(result, 200)


@functions_framework.http
def analyze_all_candidates(request):
    """
    Queue every candidate that is unanalyzed, pending or failed.

    Returns immediately; analysis continues in the background.
    Poll get_candidate_analysis for per-candidate results.
    """
    if request.method == 'OPTIONS':
        return _preflight('POST')

    try:
        ack = get_analyzer().analyze_all_pending()
    except sqlite3.Error as e:
        logger.error(f"Database error queueing analysis: {e}")
        return _respond({'error': {
            'stage': 'database',
            'message': 'Database unavailable',
            'recoverable': True
        }}, 503)
    except Exception as e:
        logger.exception("Error starting landing page analysis")
        return _respond({'error': {
            'stage': 'processing',
            'message': str(e),
            'recoverable': False
        }}, 500)

    return _respond(ack, 200)


@functions_framework.http
def get_candidate_analysis(request):
    """Return status, error, resolved URL, timestamp and result for one candidate."""
    if request.method == 'OPTIONS':
        return _preflight('GET')

    candidate_id = _parse_candidate_id(request)
    if candidate_id is None:
        return _respond({'error': 'Missing or invalid field: candidate_id'}, 400)

    try:
        analysis = get_analyzer().get_analysis(candidate_id)
    except CandidateNotFoundError as e:
        return _respond({'error': str(e)}, 404)
    except sqlite3.Error as e:
        logger.error(f"Database error reading candidate #{candidate_id}: {e}")
        return _respond({'error': {
            'stage': 'database',
            'message': 'Database unavailable',
            'recoverable': True
        }}, 503)

    return _respond(analysis, 200)


@functions_framework.http
def create_candidates(request):
    """
    Register candidates for analysis.

    Expected JSON input (a single object is accepted too):
    {
        "candidates": [
            {"name": "Widget Pro", "source_url": "https://hop.example/xyz", "category": "unknown"}
        ]
    }
    """
    if request.method == 'OPTIONS':
        return _preflight('POST')

    request_json = request.get_json(silent=True)
    if not request_json:
        return _respond({'error': 'Missing request body'}, 400)

    if isinstance(request_json, dict) and 'candidates' in request_json:
        items = request_json['candidates']
    elif isinstance(request_json, list):
        items = request_json
    else:
        items = [request_json]

    if not isinstance(items, list) or not items:
        return _respond({'error': 'candidates must be a non-empty array'}, 400)

    try:
        results = get_analyzer().store.create_many(items)
    except sqlite3.Error as e:
        logger.error(f"Database error creating candidates: {e}")
        return _respond({'error': {
            'stage': 'database',
            'message': 'Database unavailable',
            'recoverable': True
        }}, 503)

    status = 201 if results['created'] else 400
    return _respond({
        'success': bool(results['created']),
        'created_count': len(results['created']),
        'failed_count': len(results['failed']),
        'created': results['created'],
        'failed': results['failed'],
    }, status)
