"""Study logic constants. No UI."""
# Practice test: shuffle the filtered course questions and take the first N.
# Schedule: 45 minutes per question, categories under 80% need work.

DEFAULT_TEST_SIZE = 5
MINUTES_PER_QUESTION = 45
NEEDS_WORK_THRESHOLD = 80.0
MINUTES_PER_MISSING_PERCENT = 1.2
MAX_PRACTICE_RECOMMENDATIONS = 5
SCHEDULE_FIRST_HOUR = 8
SCHEDULE_HOURS = 12  # 08:00 to 19:00
EXAM_WEEK_DAYS = 7
PAGE_SIZE = 1000
UPSERT_CHUNK_SIZE = 200
CATEGORY_SAMPLE_SIZES = (3, 4, 5, 6)
