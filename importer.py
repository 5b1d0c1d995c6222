"""Ingest a question bank .jsonl: upsert courses, categories and questions."""
import json
import argparse
import logging
from pathlib import Path
from uuid import uuid5, NAMESPACE_URL

from db import get_supabase_uncached, upsert_rows
from engine import UPSERT_CHUNK_SIZE

logger = logging.getLogger(__name__)

DEFAULT_JSONL = Path(__file__).resolve().parent / "question_bank.jsonl"


def question_uuid(course: str, source_id: str | None, text: str) -> str:
    """Stable id so re-imports update rows in place."""
    key = source_id or f"{course}\n{text}"
    return str(uuid5(NAMESPACE_URL, f"studyhub:{course}:{key}"))


def parse_year(value) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _text(value) -> str:
    """Stripped string value; anything that is not a string counts as blank."""
    return value.strip() if isinstance(value, str) else ""


def parse_line(line: str) -> dict | None:
    """Parse one JSONL line into {course, category, question row}. Returns None if invalid/skip."""
    line = line.strip()
    if not line:
        return None
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict):
        return None
    course = _text(raw.get("course") or raw.get("course_name"))
    category = _text(raw.get("category"))
    text = _text(raw.get("question") or raw.get("text"))
    if not course or not category or not text:
        return None
    answer = _text(raw.get("answer")) or None
    professor = _text(raw.get("professor")) or None
    source_id = raw.get("id")
    return {
        "course": course,
        "category": category,
        "question": {
            "id": question_uuid(course, str(source_id) if source_id not in (None, "") else None, text),
            "question": text,
            "answer": answer,
            "category": category,
            "year": parse_year(raw.get("year")),
            "professor": professor,
        },
    }


def load_and_transform(path: Path):
    """Read JSONL and yield parsed entries."""
    with path.open("r", encoding="utf-8") as f:
        for n, line in enumerate(f, 1):
            entry = parse_line(line)
            if entry:
                yield entry
            elif line.strip():
                logger.warning("Skipping line %d: missing course, category or question", n)


def build_rows(entries: list[dict]) -> tuple[list[dict], list[dict], list[dict]]:
    """Split parsed entries into (courses, categories, questions) rows.

    A category belongs to one course: entries that reuse a category name
    under a different course are skipped.
    """
    owner = {}
    kept = []
    for e in entries:
        course = owner.setdefault(e["category"], e["course"])
        if course != e["course"]:
            logger.warning(
                "Skipping question %s: category %r already belongs to course %r, not %r",
                e["question"]["id"], e["category"], course, e["course"],
            )
            continue
        kept.append(e)
    entries = kept
    courses = {e["course"]: {"course_name": e["course"]} for e in entries}
    categories = {e["category"]: {"category": e["category"], "course": e["course"]} for e in entries}
    questions = [e["question"] for e in entries]
    return list(courses.values()), list(categories.values()), questions


def delete_course_questions(client, course: str):
    """Delete all questions in the course's categories."""
    r = client.table("categories").select("category").eq("course", course).execute()
    names = [row["category"] for row in r.data or []]
    if names:
        client.table("questions").delete().in_("category", names).execute()
    return names


def run_import(jsonl_path: Path | None = None, chunk_size: int = UPSERT_CHUNK_SIZE, dry_run: bool = False, replace_course: str | None = None):
    path = jsonl_path or DEFAULT_JSONL
    if not path.exists():
        raise FileNotFoundError(f"JSONL not found: {path}")
    courses, categories, questions = build_rows(list(load_and_transform(path)))
    if dry_run:
        print(f"Dry run: would upsert {len(courses)} courses, {len(categories)} categories, {len(questions)} questions from {path}")
        if questions:
            print("Sample row:", questions[0])
        return
    client = get_supabase_uncached()
    if replace_course:
        names = delete_course_questions(client, replace_course)
        print(f"Deleted existing questions of {replace_course} ({len(names)} categories)")
    upsert_rows(client, "courses", courses, on_conflict="course_name", chunk_size=chunk_size)
    upsert_rows(client, "categories", categories, on_conflict="category", chunk_size=chunk_size)
    n = upsert_rows(client, "questions", questions, on_conflict="id", chunk_size=chunk_size)
    print(f"Upserted {n} questions from {path}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import a question bank JSONL into Supabase.")
    parser.add_argument(
        "jsonl",
        nargs="?",
        default=None,
        help=f"Path to .jsonl (default: {DEFAULT_JSONL})",
    )
    parser.add_argument("--chunk-size", type=int, default=UPSERT_CHUNK_SIZE, help=f"Upsert chunk size (default {UPSERT_CHUNK_SIZE})")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not upsert")
    parser.add_argument("--replace-course", metavar="COURSE", default=None, help="Delete the course's questions first (fresh import)")
    args = parser.parse_args()
    path = Path(args.jsonl) if args.jsonl else DEFAULT_JSONL
    run_import(jsonl_path=path, chunk_size=args.chunk_size, dry_run=args.dry_run, replace_course=args.replace_course)
