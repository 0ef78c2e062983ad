from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from talentmatch.config import configure_logging, load_matching_config
from talentmatch.errors import ConflictError, NotFoundError
from talentmatch.repository import JsonCandidateRepository, JsonJobRepository, JsonShortlistRepository
from talentmatch.service import MatchingService
from talentmatch.shortlist import Shortlist, ShortlistEntry, entries_by_status

EXIT_NOT_FOUND = 2
EXIT_CONFLICT = 3


def build_service(data_dir: Path, *, default_max_candidates: int = 10) -> MatchingService:
    return MatchingService(
        jobs=JsonJobRepository(data_dir, default_max_candidates=default_max_candidates),
        candidates=JsonCandidateRepository(data_dir),
        shortlists=JsonShortlistRepository(data_dir),
    )


def _print_entry(idx: int, e: ShortlistEntry) -> None:
    print(f"\n{idx}) {e.candidate_id}  [{e.status.value}]")
    print(f"   score: {e.overall_score}")
    print(f"   {e.match.explanation}")
    b = e.breakdown
    print(
        f"   skills {b.skill_match} | experience {b.experience_match} | portfolio {b.portfolio_depth}"
        f" | education {b.education_alignment} | github {b.github_activity} | availability {b.availability_fit}"
    )
    if e.match.missing_skills:
        print(f"   missing skills: {', '.join(sorted(e.match.missing_skills))}")
    if e.notes:
        print(f"   notes: {e.notes}")


def print_human_summary(shortlist: Shortlist, entries: Optional[List[ShortlistEntry]] = None) -> None:
    summary = shortlist.summary()
    print(f"\n=== Shortlist for job {shortlist.job_id} ===")
    print(
        f"Candidates: {summary['totalCandidates']} | Average score: {summary['averageMatchScore']}"
        f" | Top score: {summary['topMatchScore']}"
    )
    if shortlist.last_updated_at:
        print(f"Last updated: {shortlist.last_updated_at.isoformat()}")
    for idx, e in enumerate(entries if entries is not None else shortlist.entries, start=1):
        _print_entry(idx, e)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TalentMatch shortlist tooling")
    parser.add_argument("--data-dir", type=str, default="", help="Directory holding jobs.json / candidates.json")
    parser.add_argument("--json", action="store_true", help="Print JSON only (machine-readable)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Rescore candidates and regenerate a job's shortlist")
    gen.add_argument("--job-id", required=True)

    show = sub.add_parser("show", help="Print the current shortlist for a job")
    show.add_argument("--job-id", required=True)
    show.add_argument("--status", default="", help="Only entries with this status")

    status = sub.add_parser("status", help="Set a shortlisted candidate's status")
    status.add_argument("--job-id", required=True)
    status.add_argument("--candidate-id", required=True)
    status.add_argument("--status", required=True, help="shortlisted|contacted|interviewed|hired|rejected")
    status.add_argument("--notes", default=None)

    hire = sub.add_parser("hire", help="Mark a shortlisted candidate as hired")
    hire.add_argument("--job-id", required=True)
    hire.add_argument("--candidate-id", required=True)
    hire.add_argument("--notes", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)
    cfg = load_matching_config()
    configure_logging(cfg.log_level)

    data_dir = Path(args.data_dir) if args.data_dir else cfg.data_dir
    service = build_service(data_dir, default_max_candidates=cfg.default_max_candidates)

    try:
        if args.command == "generate":
            shortlist = service.regenerate_with_retry(args.job_id, retries=cfg.conflict_retries)
            if args.json:
                print(json.dumps(shortlist.to_dict(), indent=2))
            else:
                print_human_summary(shortlist)
        elif args.command == "show":
            shortlist = service.get_shortlist(args.job_id)
            entries = entries_by_status(shortlist, args.status) if args.status else None
            if args.json:
                payload = shortlist.to_dict()
                if entries is not None:
                    payload["entries"] = [e.to_dict() for e in entries]
                print(json.dumps(payload, indent=2))
            else:
                print_human_summary(shortlist, entries)
        else:
            if args.command == "hire":
                entry = service.hire_candidate(args.job_id, args.candidate_id, args.notes)
            else:
                entry = service.set_status(args.job_id, args.candidate_id, args.status, args.notes)
            if args.json:
                print(json.dumps(entry.to_dict(), indent=2))
            else:
                print(f"[TalentMatch] {entry.candidate_id} is now {entry.status.value} for job {args.job_id}")
    except NotFoundError as exc:
        print(f"[TalentMatch] {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except ConflictError as exc:
        print(f"[TalentMatch] {exc}. Try again.", file=sys.stderr)
        return EXIT_CONFLICT
    except ValueError as exc:
        print(f"[TalentMatch] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
