"""
HTTP routes for shortlist generation and candidate status changes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Flask, current_app, jsonify, request

from talentmatch.config import load_matching_config
from talentmatch.errors import ConflictError, NotFoundError
from talentmatch.service import MatchingService
from talentmatch.shortlist import entries_by_status

logger = logging.getLogger(__name__)

matching_bp = Blueprint("matching", __name__)

SERVICE_KEY = "talentmatch.service"
RETRIES_KEY = "talentmatch.conflict_retries"


def _service() -> MatchingService:
    return current_app.extensions[SERVICE_KEY]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _required(data: Dict[str, Any], *names: str) -> Tuple[str, ...]:
    missing = [n for n in names if not str(data.get(n) or "").strip()]
    if missing:
        raise ValueError(f"missing required field(s): {', '.join(missing)}")
    return tuple(str(data[n]).strip() for n in names)


@matching_bp.errorhandler(NotFoundError)
def _not_found(exc: NotFoundError):
    return jsonify({"error": "not_found", "message": str(exc)}), 404


@matching_bp.errorhandler(ConflictError)
def _conflict(exc: ConflictError):
    logger.warning("Giving up after repeated write conflicts: %s", exc)
    return jsonify({"error": "conflict", "message": str(exc)}), 409


@matching_bp.errorhandler(ValueError)
def _bad_request(exc: ValueError):
    return jsonify({"error": "bad_request", "message": str(exc)}), 400


@matching_bp.route("/matching/generate", methods=["POST"])
def generate_shortlist():
    """Rescore all published candidates for a job and return the new shortlist"""
    (job_id,) = _required(_body(), "jobId")
    retries = current_app.config.get(RETRIES_KEY, 0)
    shortlist = _service().regenerate_with_retry(job_id, retries=retries)
    return jsonify(shortlist.to_dict()), 200


@matching_bp.route("/matching/shortlist/<job_id>", methods=["GET"])
def get_shortlist(job_id: str):
    """Current shortlist for a job (optionally filtered with ?status=)"""
    shortlist = _service().get_shortlist(job_id)
    payload = shortlist.to_dict()
    status = request.args.get("status", "").strip()
    if status:
        payload["entries"] = [e.to_dict() for e in entries_by_status(shortlist, status)]
    return jsonify(payload), 200


@matching_bp.route("/matching/status", methods=["POST"])
def update_status():
    data = _body()
    job_id, candidate_id, status = _required(data, "jobId", "candidateId", "status")
    entry = _service().set_status(job_id, candidate_id, status, data.get("notes"))
    return jsonify(entry.to_dict()), 200


@matching_bp.route("/matching/hire", methods=["POST"])
def hire_candidate():
    data = _body()
    job_id, candidate_id = _required(data, "jobId", "candidateId")
    entry = _service().hire_candidate(job_id, candidate_id, data.get("notes"))
    return jsonify({"message": "Candidate hired successfully", "entry": entry.to_dict()}), 200


def create_app(service: MatchingService, *, conflict_retries: int | None = None) -> Flask:
    app = Flask(__name__)
    app.extensions[SERVICE_KEY] = service
    if conflict_retries is None:
        conflict_retries = load_matching_config().conflict_retries
    app.config[RETRIES_KEY] = conflict_retries
    app.register_blueprint(matching_bp)
    return app
