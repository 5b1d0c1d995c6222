"""Study Hub — course question tracker with practice tests, progress and schedule."""
import logging
import sys
from datetime import date
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from engine import CATEGORY_SAMPLE_SIZES, SCHEDULE_FIRST_HOUR, SCHEDULE_HOURS
from studyhub import practice, progress, schedule
from studyhub.database import DatabaseClient
from studyhub.errors import NoQuestionsError, SessionMismatchError
from studyhub.filters import QuestionFilter, count_label, facet_values, filter_questions
from studyhub.models import QuestionStatus, course_color

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

PAGES = ["Dashboard", "Courses", "Course", "Practice Test", "Progress", "Schedule"]
STATUS_BADGES = {
    QuestionStatus.CORRECT: ":green[✓ correct]",
    QuestionStatus.INCORRECT: ":red[✗ incorrect/partial]",
    QuestionStatus.UNANSWERED: ":gray[○ unanswered]",
}
TIME_CHOICES = [f"{SCHEDULE_FIRST_HOUR + i // 2:02d}:{'30' if i % 2 else '00'}" for i in range(SCHEDULE_HOURS * 2 + 1)]

st.set_page_config(page_title="Study Hub", layout="wide")
st.sidebar.title("Study Hub")

try:
    db = DatabaseClient()
except ValueError as e:
    st.error(f"Could not connect to the backend. Check .env (SUPABASE_URL, SUPABASE_KEY). {e}")
    st.stop()


def go(page: str, course: str | None = None):
    """Switch page (and optionally the active course) on the next run."""
    st.session_state["_goto"] = page
    if course is not None:
        st.session_state["active_course"] = course
    st.query_params["page"] = page


def course_badge(course_name: str) -> str:
    color = course_color(course_name)
    return (
        f"<span style='color:{color.hex};background:{color.background};"
        f"padding:2px 8px;border-radius:6px;font-weight:600'>{course_name}</span>"
    )


# ----- Sign in -----
if "user" not in st.session_state:
    st.header("Sign in")
    with st.form("sign_in"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")
    if submitted:
        try:
            user = db.sign_in(email, password)
        except Exception as e:
            logger.error(f"Sign-in failed: {e}")
            user = None
        if user:
            st.session_state["user"] = user
            st.rerun()
        st.error("Sign-in failed. Check your email and password.")
    st.stop()

user_id = st.session_state["user"]["id"]

# Apply navigation requested by a button before the radio is built
if "_goto" in st.session_state:
    st.session_state["nav_page"] = st.session_state.pop("_goto")
if "nav_page" not in st.session_state:
    default_page = st.query_params.get("page", "Dashboard")
    st.session_state["nav_page"] = default_page if default_page in PAGES else "Dashboard"
page = st.sidebar.radio("Navigate", PAGES, key="nav_page", label_visibility="collapsed")
if st.query_params.get("page") != page:
    st.query_params["page"] = page

# ----- Sidebar: selected courses -----
try:
    selected_courses = db.get_selected_courses(user_id)
except Exception as e:
    logger.error(f"Error fetching selected courses: {e}")
    st.sidebar.error("Could not load your courses.")
    selected_courses = []


def _open_course(course_name: str):
    go("Course", course_name)


def _remove_course(course_name: str):
    if not db.remove_course(user_id, course_name):
        st.toast("Failed to remove course", icon="⚠️")
        return
    if st.session_state.get("active_course") == course_name:
        st.session_state.pop("active_course", None)
        go("Dashboard")
    st.toast(f"{course_name} has been removed from your courses")


st.sidebar.subheader("My courses")
for sc in selected_courses:
    col1, col2 = st.sidebar.columns([4, 1])
    active = st.session_state.get("active_course") == sc.course_name
    col1.button(
        sc.course_name, key=f"nav_{sc.course_name}", use_container_width=True,
        type="primary" if active else "secondary", on_click=_open_course, args=(sc.course_name,),
    )
    col2.button("✕", key=f"rm_{sc.course_name}", help="Remove course", on_click=_remove_course, args=(sc.course_name,))
st.sidebar.button("Add course", on_click=go, args=("Courses",), use_container_width=True)
st.sidebar.divider()
st.sidebar.caption(st.session_state["user"].get("email") or "")
if st.sidebar.button("Sign out"):
    try:
        db.sign_out()
    except Exception as e:
        logger.warning(f"Sign-out failed: {e}")
    for key in list(st.session_state.keys()):
        del st.session_state[key]
    st.rerun()

active_course = st.session_state.get("active_course")


def load_course_questions(course_name: str, force: bool = False):
    """Course questions cached in session state; reloaded when the course changes."""
    cached = st.session_state.get("course_questions")
    if force or not cached or cached["course"] != course_name:
        st.session_state["course_questions"] = {"course": course_name, "questions": db.get_course_questions(course_name)}
    return st.session_state["course_questions"]["questions"]


def _set_local_status(question_id: str, status: QuestionStatus):
    cached = st.session_state.get("course_questions")
    if not cached:
        return
    for q in cached["questions"]:
        if q.id == question_id:
            q.status = status


def _mark_status(question_id: str, status: QuestionStatus):
    if db.set_question_status(question_id, status):
        _set_local_status(question_id, status)
        st.toast(f"Question marked as {status.label}!", icon="✅")
    else:
        st.toast("Failed to update question status", icon="⚠️")


# ----- Dashboard -----
if page == "Dashboard":
    st.header("Dashboard")
    try:
        today = date.today()
        db.mark_past_exams(user_id, today)
        courses = db.get_selected_courses(user_id)
        stats = progress.dashboard_stats(
            courses, db.count_completed_exams(user_id), db.count_questions_answered(), today
        )
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("Exams completed", stats["tests_completed"])
            if stats["tests_completed"] == 0:
                st.caption("Start your first test!")
        with col2:
            st.metric("Questions answered", stats["questions_answered"])
        with col3:
            st.metric("Accuracy", f"{stats['accuracy']}%")
            st.caption(f"{stats['correct_answers']} correct answers")
        with col4:
            st.metric("Upcoming exams", stats["upcoming_tests"])

        left, right = st.columns(2)
        with left:
            st.subheader("My courses")
            active = progress.active_courses(courses)
            if not active:
                st.info("No active courses yet.")
                st.button("Add Course", key="dash_add_course", on_click=go, args=("Courses",))
            for i, course in enumerate(active):
                days = course.days_to_exam(today)
                c1, c2 = st.columns([3, 1])
                label = course_badge(course.course_name)
                if days is not None and days >= 0:
                    label += f" &nbsp; {progress.days_label(days)}"
                c1.markdown(label, unsafe_allow_html=True)
                c2.button("View course", key=f"dash_view_{i}", on_click=go, args=("Course", course.course_name))
        with right:
            st.subheader("Upcoming exams")
            upcoming = progress.upcoming_exams(courses, today)
            if not upcoming:
                st.info("No upcoming exams.")
                st.button("Add Course", key="dash_add_exam", on_click=go, args=("Courses",))
            for course in upcoming:
                st.markdown(
                    f"{course_badge(course.course_name)} &nbsp; {progress.days_label(course.days_to_exam(today))}"
                    f" &nbsp; <small>{course.exam_date:%B %d, %Y}</small>",
                    unsafe_allow_html=True,
                )
    except Exception as e:
        logger.exception("Error loading dashboard")
        st.error(f"Could not load dashboard. Check DB and .env (SUPABASE_URL, SUPABASE_KEY). {e}")

# ----- Courses -----
elif page == "Courses":
    st.header("Select a course")
    try:
        all_courses = db.list_courses()
    except Exception as e:
        logger.error(f"Error fetching courses: {e}")
        st.error("Failed to load courses")
        st.stop()

    taken = {c.course_name for c in selected_courses}
    choice = st.selectbox(
        "Course", [c.course_name for c in all_courses], index=None, placeholder="Select a course",
    )
    exam_date = st.date_input("Exam date (optional)", value=None, min_value=date.today())
    if st.button("Select Course", type="primary"):
        if not choice:
            st.error("Please select a course")
        elif choice in taken:
            st.warning(f"{choice} is already in your courses")
        elif db.select_course(user_id, choice, exam_date):
            if exam_date:
                st.toast(f"Course added with exam scheduled for {exam_date:%B %d, %Y}")
            else:
                st.toast("Course added successfully")
            go("Course", choice)
            st.rerun()
        else:
            st.error(f"Failed to select course {choice}")

# ----- Course -----
elif page == "Course":
    if not active_course:
        st.info("Pick a course from the sidebar.")
        st.stop()
    try:
        if not db.is_course_selected(user_id, active_course):
            st.error("You have not selected this course")
            st.stop()
        course = db.get_course(active_course)
        if course is None:
            st.error("Failed to load course details")
            st.stop()
        questions = load_course_questions(active_course, force=st.session_state.pop("_reload_questions", False))
    except Exception as e:
        logger.exception("Error loading course")
        st.error(f"Failed to load questions: {e}")
        st.stop()

    st.markdown(f"## {course_badge(course.course_name)}", unsafe_allow_html=True)
    c1, c2, c3 = st.columns([2, 2, 1])
    c1.button("New practice test", type="primary", on_click=go, args=("Practice Test",))
    with c2.popover("Start Practice Test"):
        st.caption("One random question from each of N random categories")
        sample_size = st.selectbox("Number of questions", CATEGORY_SAMPLE_SIZES, key="sample_size")
        if st.button("Start", key="start_sample_test"):
            try:
                test = practice.build_category_sample_test(questions, active_course, sample_size)
                practice.save_current_test(st.session_state, test)
                go("Practice Test")
                st.rerun()
            except NoQuestionsError as e:
                st.error(str(e))
    if c3.button("Refresh"):
        st.session_state["_reload_questions"] = True
        st.rerun()

    facets = facet_values(questions)
    search = st.text_input("Search questions...", key="course_search")
    show_answered = st.checkbox("Show answered questions", key="course_show_answered")
    f1, f2, f3 = st.columns(3)
    sel_categories = f1.multiselect("Categories", facets["categories"], key="course_categories")
    sel_professors = f2.multiselect("Professors", facets["professors"], key="course_professors")
    sel_years = f3.multiselect("Years", facets["years"], key="course_years")

    flt = QuestionFilter(
        search=search, categories=sel_categories, professors=sel_professors,
        years=sel_years, show_answered=show_answered,
    )
    filtered = filter_questions(questions, flt)
    st.subheader("Questions")
    st.caption(count_label(len(filtered)))
    if not filtered:
        st.info("No questions match your search criteria.")

    for q in filtered:
        with st.container(border=True):
            st.markdown(q.question)
            tags = [t for t in (q.category, str(q.year) if q.year else None, q.professor) if t]
            st.caption(" · ".join(tags) + ("  |  " if tags else "") + STATUS_BADGES[q.status])
            if q.answer:
                with st.expander("Show answer"):
                    st.write(q.answer)
            b1, b2, b3, _ = st.columns([1, 1, 1, 3])
            b1.button("Correct", key=f"ok_{q.id}", on_click=_mark_status, args=(q.id, QuestionStatus.CORRECT),
                      disabled=q.status is QuestionStatus.CORRECT)
            b2.button("Incorrect/partial", key=f"bad_{q.id}", on_click=_mark_status, args=(q.id, QuestionStatus.INCORRECT),
                      disabled=q.status is QuestionStatus.INCORRECT)
            b3.button("Unanswered", key=f"reset_{q.id}", on_click=_mark_status, args=(q.id, QuestionStatus.UNANSWERED),
                      disabled=q.status is QuestionStatus.UNANSWERED)

# ----- Practice Test -----
elif page == "Practice Test":
    if not active_course:
        st.info("Pick a course from the sidebar.")
        st.stop()
    store = st.session_state

    try:
        current = practice.load_current_test(store, active_course)
    except SessionMismatchError as e:
        logger.warning(f"Discarding stored test: {e}")
        practice.clear_current_test(store)
        current = None
    view = store.get("practice_view", "new")
    if current is not None and not current.is_finished:
        view = "take"
    elif view == "take":
        view = "new"

    def _to_view(name: str):
        store["practice_view"] = name

    def _back_to_course():
        go("Course", active_course)

    # New test
    if view == "new":
        st.header("New practice test")
        st.caption(f"Select filters to generate a test from {active_course} questions")
        try:
            course_questions = load_course_questions(active_course)
            categories = [c.category for c in db.get_categories([active_course])]
        except Exception as e:
            logger.error(f"Error fetching filters: {e}")
            st.error("Failed to load filters")
            st.stop()
        facets = facet_values(course_questions)
        category = st.selectbox("Category", categories, index=None, placeholder="Any category")
        year = st.selectbox("Year", facets["years"], index=None, placeholder="Any year")
        professor = st.selectbox("Professor", facets["professors"], index=None, placeholder="Any professor")
        if st.button("Start Test", type="primary"):
            try:
                test = practice.build_practice_test(
                    course_questions, active_course, category=category, year=year, professor=professor,
                )
                practice.save_current_test(store, test)
                _to_view("take")
                st.rerun()
            except NoQuestionsError as e:
                st.error(f"No questions found. {e}")
            except Exception as e:
                logger.exception("Error starting test")
                st.error(f"Failed to start test. Please try again. {e}")

    # Take test
    elif view == "take":
        test = current

        def _reveal():
            t = practice.load_current_test(store, active_course)
            t.reveal()
            practice.save_current_test(store, t)

        def _answer(is_correct: bool):
            t = practice.load_current_test(store, active_course)
            question = t.record_answer(is_correct)
            status = QuestionStatus.CORRECT if is_correct else QuestionStatus.INCORRECT
            if db.set_question_status(question.id, status):
                _set_local_status(question.id, status)
            else:
                st.toast("Failed to update question status", icon="⚠️")
            if t.is_finished:
                results = t.finish()
                practice.save_results(store, results)
                practice.clear_current_test(store)
                _to_view("results")
                st.toast(f"Test completed! Score: {results.score}%")
            else:
                practice.save_current_test(store, t)

        st.button("← Back to Course", on_click=_back_to_course)
        q = test.current_question
        c1, c2 = st.columns(2)
        c1.subheader(f"Question {test.current_index + 1} of {len(test.questions)}")
        c2.metric("Score", f"{test.running_accuracy}%")
        st.progress(test.progress)
        if test.criteria_label:
            st.caption(test.criteria_label)
        with st.container(border=True):
            st.markdown(q.question)
            tags = [t for t in (q.category, str(q.year) if q.year else None, q.professor) if t]
            if tags:
                st.caption(" · ".join(tags))
            if test.answer_revealed:
                st.divider()
                st.write(q.answer or "No answer recorded for this question.")
        if test.answer_revealed:
            b1, b2 = st.columns(2)
            b1.button("Incorrect", key="take_incorrect", on_click=_answer, args=(False,), use_container_width=True)
            b2.button("Correct", key="take_correct", on_click=_answer, args=(True,), type="primary", use_container_width=True)
        else:
            st.button("Reveal Answer", on_click=_reveal, type="primary", use_container_width=True)

    # Results
    else:
        st.header("Test results")
        try:
            results = practice.load_results(store, active_course)
        except SessionMismatchError as e:
            logger.warning(f"Ignoring stored results: {e}")
            results = None
        if results is None or results.total == 0:
            st.info("No test results found. Please take a test first.")
        else:
            if results.criteria_label:
                st.caption(results.criteria_label)
            minutes, seconds = results.duration
            c1, c2, c3 = st.columns(3)
            c1.metric("Accuracy", f"{results.score}%")
            c2.metric("Correct", f"{results.correct_count}/{results.total}")
            c3.metric("Time taken", f"{minutes}m {seconds}s")
        b1, b2 = st.columns(2)
        b1.button("Take Another Test", on_click=_to_view, args=("new",), type="primary")
        b2.button("Back to Course", on_click=_back_to_course)

# ----- Progress -----
elif page == "Progress":
    st.header("Progress")
    try:
        names = [c.course_name for c in selected_courses]
        categories = db.get_categories(names)
        questions = db.get_questions_for_categories(c.category for c in categories)
        items = progress.build_progress(selected_courses, categories, questions)
    except Exception as e:
        logger.exception("Error loading progress")
        st.error(f"Could not load progress. {e}")
        st.stop()

    term = st.text_input("Search courses...", key="progress_search")
    shown = progress.filter_progress(items, term)
    if not shown:
        st.info("No courses match your search.")
    for item in shown:
        with st.container(border=True):
            c1, c2 = st.columns([3, 1])
            c1.markdown(course_badge(item.course_name), unsafe_allow_html=True)
            c2.write(f"{item.completed_questions} / {item.total_questions}")
            st.progress(item.progress / 100)
            st.caption(f"{progress.format_percent(item.progress)} complete")
            with st.expander("Progress by category"):
                cat_term = st.text_input("Search categories...", key=f"cat_search_{item.course_name}")
                for cat in progress.filter_progress(item.categories, cat_term):
                    st.write(f"**{cat.category}** — {cat.completed_questions} / {cat.total_questions}")
                    st.progress(cat.progress / 100)

# ----- Schedule -----
elif page == "Schedule":
    st.header("Study schedule")
    today = date.today()
    try:
        exams = schedule.upcoming_exam_dates(selected_courses, today)
        performance = schedule.category_performance(
            db.get_questions_by_course(c.course_name for c in selected_courses)
        )
    except Exception as e:
        logger.exception("Error loading schedule data")
        st.error(f"Could not load schedule data. {e}")
        st.stop()

    blocked = st.session_state.setdefault("blocked_times", [])
    sessions = st.session_state.setdefault("study_sessions", [])
    weekly = schedule.generate_weekly_schedule(exams, performance, blocked, today)

    recs = schedule.study_recommendations(exams, performance, today)
    if recs:
        st.subheader("Exam week focus")
        for rec in recs:
            with st.expander(f"{rec.course_name} — exam {rec.exam_date:%B %d, %Y}", expanded=True):
                for cat in rec.categories:
                    st.write(f"**{cat.name}**: {cat.performance:.0f}% · study {cat.recommended_minutes} min")

    st.subheader("Weekly schedule")
    st.table(schedule.schedule_grid(weekly))
    with st.expander("Block time slot"):
        with st.form("block_slot"):
            day = st.selectbox("Day", [d.day for d in weekly], format_func=lambda d: d.strftime("%A %d %B"))
            c1, c2 = st.columns(2)
            start = c1.selectbox("Start", TIME_CHOICES, index=0)
            end = c2.selectbox("End", TIME_CHOICES, index=2)
            reason = st.text_input("Reason")
            if st.form_submit_button("Block"):
                try:
                    st.session_state["blocked_times"] = schedule.block_time_slot(blocked, day, start, end, reason)
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

    left, right = st.columns(2)
    with left:
        st.subheader("Upcoming exams")
        if not exams:
            st.info("No upcoming exams. Add an exam date when selecting a course.")
        for exam in exams:
            st.markdown(
                f"{course_badge(exam.course_name)} &nbsp; {exam.exam_date:%B %d, %Y}"
                f" ({progress.days_label((exam.exam_date - today).days)})",
                unsafe_allow_html=True,
            )
        st.subheader("Practice recommendations")
        weak = schedule.practice_recommendations(performance)
        if not weak:
            st.success("All categories are at 80% or better.")
        for perf in weak:
            st.write(f"**{perf.category}** ({perf.course_name}) — {perf.percentage:.0f}%")
            st.progress(perf.percentage / 100)

    with right:
        st.subheader("Study sessions")
        picked = st.date_input("Date", value=today, key="schedule_date")
        for exam in schedule.exams_on(exams, picked):
            st.warning(f"Exam: {exam.course_name}")
        if picked in schedule.booked_dates(sessions):
            st.caption("Sessions planned for this day:")

        def _toggle(session_id: str):
            st.session_state["study_sessions"] = schedule.toggle_session(st.session_state["study_sessions"], session_id)

        for s in schedule.sessions_for_date(sessions, picked):
            st.checkbox(
                f"{s.subject} · {s.duration} min" + (f" · {s.focus_area}" if s.focus_area else ""),
                value=s.completed, key=f"session_{s.id}", on_change=_toggle, args=(s.id,),
            )
        with st.form("add_session", clear_on_submit=True):
            subject = st.selectbox("Subject", [c.course_name for c in selected_courses] or ["General"])
            duration = st.number_input("Duration (minutes)", min_value=15, max_value=480, value=60, step=15)
            focus = st.text_input("Focus area")
            if st.form_submit_button("Add session"):
                st.session_state["study_sessions"] = schedule.add_study_session(
                    sessions, picked, subject, int(duration), focus
                )
                st.rerun()
        st.caption("Upcoming sessions")
        for s in schedule.upcoming_sessions(sessions, today):
            st.write(f"{s.day:%a %d %b} — {s.subject} ({s.duration} min)")
