"""
AI Company Matcher - CLI Entry Point.

Usage:
    python main.py search <profile.json> [location] [max_results]
    python main.py resume <resume.pdf>
    python main.py serve [port]
"""

import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from backend.config import settings, setup_logging  # noqa: E402
from backend.db.base import get_session_factory, init_db  # noqa: E402
from backend.db.stores import ProfileStore  # noqa: E402
from backend.models.profile import UserProfile  # noqa: E402
from backend.pipeline.dispatch import InlineDispatch, RetryPolicy  # noqa: E402
from backend.pipeline.orchestrator import build_orchestrator  # noqa: E402
from backend.pipeline.progress import ProgressReporter  # noqa: E402
from backend.pipeline.validation import SubmissionError, validate_submission  # noqa: E402
from backend.tools.pdf_parser import extract_resume_text_from_path  # noqa: E402

POLL_INTERVAL = 2.0


def print_snapshot(snapshot: dict) -> None:
    stats = snapshot.get("live_stats") or {}
    print(
        f"[{snapshot['status']}] {snapshot['progress']}% {snapshot['current_step']}"
        f" | saved {stats.get('companies_saved', 0)}"
        f" skipped {stats.get('companies_skipped', 0)}"
        f" errors {stats.get('processing_errors', 0)}"
    )


async def run_search(profile: UserProfile, location: str, max_results: int) -> int:
    """Run one search in this process and print progress until it ends."""
    init_db()
    orchestrator = build_orchestrator(settings, get_session_factory())
    dispatcher = InlineDispatch(orchestrator.jobs, orchestrator, RetryPolicy.from_settings(settings))
    reporter = ProgressReporter(orchestrator.jobs)

    orchestrator.profiles.save(profile)
    job_id = await dispatcher.submit(profile, location, max_results)
    print(f"Started search {job_id}")

    waiter = asyncio.create_task(dispatcher.wait(job_id))
    try:
        while not waiter.done():
            print_snapshot(reporter.snapshot())
            await asyncio.wait({waiter}, timeout=POLL_INTERVAL)
    except asyncio.CancelledError:
        orchestrator.jobs.pause_latest_running()
        print("Search interrupted and paused")
        raise
    finally:
        await dispatcher.close()

    final = reporter.snapshot()
    print_snapshot(final)
    if final["failed"]:
        print(f"Search failed: {final['error']}")
        return 1
    print(f"Found {final['total_found']} companies")
    return 0


def load_resume(cv_path: Path) -> int:
    """Store a PDF resume's text on the saved profile."""
    if not cv_path.exists() or cv_path.suffix.lower() != ".pdf":
        print(f"Error: {cv_path} is not a valid PDF")
        return 2

    print(f"Loading resume: {cv_path}")
    try:
        text = extract_resume_text_from_path(str(cv_path))
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    print(f"Extracted {len(text)} chars")

    init_db()
    profiles = ProfileStore(get_session_factory())
    profile = profiles.get() or UserProfile()
    profile.resume = text
    profiles.save(profile)
    print("Resume saved to profile")
    return 0


def main():
    """Run the AI Company Matcher CLI."""
    if len(sys.argv) < 2 or sys.argv[1] not in ("search", "resume", "serve"):
        print(__doc__)
        return 2

    setup_logging()

    if sys.argv[1] == "serve":
        import uvicorn

        port = int(sys.argv[2]) if len(sys.argv) > 2 else 8000
        uvicorn.run("backend.api.app:app", host="0.0.0.0", port=port)
        return 0

    if sys.argv[1] == "resume":
        return load_resume(Path(" ".join(sys.argv[2:])))  # Join all args for filenames with spaces

    if len(sys.argv) < 3:
        print("Error: profile JSON path required")
        return 2
    profile_path = Path(sys.argv[2])
    if not profile_path.exists():
        print(f"Error: {profile_path} not found")
        return 2

    profile = UserProfile.model_validate(json.loads(profile_path.read_text()))
    location = sys.argv[3] if len(sys.argv) > 3 else "Boston, MA"
    max_results = int(sys.argv[4]) if len(sys.argv) > 4 else settings.default_max_results

    try:
        validate_submission(profile, settings)
    except SubmissionError as e:
        print(f"Error: {e.message}")
        return 2

    print("AI Company Matcher")
    print("=" * 40)
    return asyncio.run(run_search(profile, location, max_results))


if __name__ == "__main__":
    sys.exit(main())
