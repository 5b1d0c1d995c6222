"""
Report questions in DB with counts by course, category and status.
Run: python report_counts.py
      python report_counts.py --course "Linear Algebra"   # one course only
"""
import argparse
import logging
import sys
from collections import Counter, defaultdict

from db import fetch_all, get_supabase_uncached
from studyhub.models import QuestionStatus


def tally(categories: list[dict], questions: list[dict]):
    """Returns (by_course, by_category, by_status) Counters plus a {(course, category): Counter(status)} map."""
    course_of = defaultdict(list)
    for row in categories:
        course_of[row.get("category")].append(row.get("course") or "(blank)")
    by_course = Counter()
    by_category = Counter()
    by_status = Counter()
    cross = defaultdict(Counter)
    for row in questions:
        cat = (row.get("category") or "").strip() or "(blank)"
        status = QuestionStatus.from_done(row.get("done")).label
        by_category[cat] += 1
        by_status[status] += 1
        for course in course_of.get(row.get("category"), ["(no course)"]):
            by_course[course] += 1
            cross[(course, cat)][status] += 1
    return by_course, by_category, by_status, cross


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--course", default=None, help="Only count questions of this course")
    args = parser.parse_args()

    try:
        client = get_supabase_uncached()
    except ValueError as e:
        print(f"Set SUPABASE_URL and SUPABASE_KEY in .env ({e})")
        sys.exit(1)

    def categories_query():
        q = client.table("categories").select("category", "course").order("category")
        return q.eq("course", args.course) if args.course else q

    categories = fetch_all(categories_query)
    names = [row["category"] for row in categories]
    if args.course and not names:
        print(f"No categories for course {args.course!r}")
        return

    def questions_query():
        q = client.table("questions").select("id", "category", "done").order("id")
        return q.in_("category", names) if args.course else q

    questions = fetch_all(questions_query)
    by_course, by_category, by_status, cross = tally(categories, questions)

    print()
    print("=" * 60)
    print("QUESTION COUNTS IN DB")
    print("=" * 60)
    print(f"\nTotal questions: {len(questions)}")
    print("\n--- By course ---")
    for name, count in sorted(by_course.items(), key=lambda x: -x[1]):
        print(f"  {count:6d}  {name!r}")
    print("\n--- By category ---")
    for name, count in sorted(by_category.items(), key=lambda x: -x[1]):
        print(f"  {count:6d}  {name!r}")
    print("\n--- By status ---")
    for name, count in sorted(by_status.items(), key=lambda x: -x[1]):
        print(f"  {count:6d}  {name}")
    print("\n--- By course + category ---")
    for (course, cat), statuses in sorted(cross.items()):
        detail = ", ".join(f"{s}={n}" for s, n in sorted(statuses.items()))
        print(f"  {sum(statuses.values()):6d}  course={course!r}  category={cat!r}  ({detail})")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    main()
