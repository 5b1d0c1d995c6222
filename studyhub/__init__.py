"""Study Hub: course question tracking, practice tests, progress and schedule."""
