import streamlit as st
from datetime import datetime, timezone

from honors_checker.aggregation import (
    HONORS_TERMS,
    LATIN_TERM_LAYOUT,
    MAX_SUBJECTS_PER_TERM,
    compute_term_aggregate,
    latin_honors_summary,
    term_honors_summary,
    year_of,
)
from honors_checker.conversion import (
    ConversionError,
    convert_from_percentage,
    convert_from_scale_a,
    convert_from_scale_b,
    format_percentage,
)
from honors_checker.feedback import FeedbackError, FeedbackRequest, submit_feedback
from honors_checker.grades import SubjectRecord
from honors_checker.io_csv import (
    dump_terms,
    frame_to_records,
    load_terms,
    parse_terms_csv,
    read_csv_upload,
    records_to_frame,
    split_known_terms,
    terms_to_csv,
    validate_terms_csv,
)

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="APC Grades Calculator | Honors, Latin Honors & Grade Converter",
    page_icon="🎓",
    layout="wide",
)

st.title("🎓 Asia Pacific College Grades Calculator")
st.write(
    "Check term honors and Latin honors eligibility from your subject grades, "
    "and convert grades between the APC, UP and percentage scales."
)

DEFAULT_ROWS = 4
STORE_KEYS = {"honors": "termsData", "latin": "latinHonorsTermsData"}


def _blank_term():
    return [SubjectRecord(code="", units=0.0, grade_token="") for _ in range(DEFAULT_ROWS)]


def _terms(store: str):
    key = STORE_KEYS[store]
    if key not in st.session_state:
        st.session_state[key] = {}
    return st.session_state[key]


def term_editor(store: str, term: str):
    terms = _terms(store)
    seed_key = f"{store}-{term}-seed"
    if seed_key not in st.session_state:
        # The editor keeps its own edits on top of a fixed seed frame
        st.session_state[seed_key] = records_to_frame(terms.get(term) or _blank_term())
    st.markdown(f"**{term}**")
    edited = st.data_editor(
        st.session_state[seed_key],
        key=f"{store}-{term}",
        num_rows="dynamic",
        use_container_width=True,
        column_order=["Code", "Units", "Grade"],
        column_config={
            "Code": st.column_config.TextColumn("Code"),
            "Units": st.column_config.NumberColumn("Units", min_value=0, step=1, format="%.0f"),
            "Grade": st.column_config.TextColumn("Grade", help="0.0-4.0, R (repeat) or NG (no grade)"),
        },
    )
    rows = frame_to_records(edited)
    if len(rows) > MAX_SUBJECTS_PER_TERM:
        st.warning(f"Only the first {MAX_SUBJECTS_PER_TERM} subjects of {term} are counted.")
        rows = rows[:MAX_SUBJECTS_PER_TERM]
    terms[term] = rows
    stats = compute_term_aggregate(rows)
    st.caption(f"GPA {stats.gpa:.2f} · {stats.total_units:g} units · {stats.total_honor_points:g} honor points")


def save_and_restore(store: str, known_terms):
    terms = _terms(store)
    c1, c2, c3 = st.columns(3)
    with c1:
        st.download_button(
            "Download as JSON",
            dump_terms(terms),
            file_name=f"{STORE_KEYS[store]}.json",
            mime="application/json",
            key=f"{store}-json-dl",
        )
    with c2:
        st.download_button(
            "Download as CSV",
            terms_to_csv(terms),
            file_name=f"{STORE_KEYS[store]}.csv",
            mime="text/csv",
            key=f"{store}-csv-dl",
        )
    with c3:
        uploaded = st.file_uploader(
            "Restore from JSON or CSV (Term, Code, Units, Grade)",
            type=["json", "csv"],
            key=f"{store}-upload",
        )
    if uploaded is not None:
        try:
            if uploaded.name.lower().endswith(".json"):
                restored = load_terms(uploaded.getvalue().decode("utf-8"))
            else:
                restored = parse_terms_csv(validate_terms_csv(read_csv_upload(uploaded)))
        except Exception as e:
            st.error(f"Upload error: {e}")
        else:
            restored, dropped = split_known_terms(restored, known_terms)
            if dropped:
                st.warning(f"These terms are not part of this calculator and will be ignored: {', '.join(dropped)}")
            if st.button("Load uploaded data", key=f"{store}-load"):
                st.session_state[STORE_KEYS[store]] = restored
                for key in [k for k in st.session_state if str(k).startswith(f"{store}-")]:
                    if key != f"{store}-upload":
                        del st.session_state[key]
                st.rerun()


honors_tab, latin_tab, converter_tab, feedback_tab, faq_tab = st.tabs(
    ["Honors", "Latin Honors", "Grade Converter", "Feedback", "FAQs"]
)

# ------------------------
# Honors calculator
# ------------------------
with honors_tab:
    st.subheader("Honors Calculator")
    st.write("Enter up to 10 subjects per term. NATSER subjects are not counted.")

    cols = st.columns(len(HONORS_TERMS))
    for col, term in zip(cols, HONORS_TERMS):
        with col:
            term_editor("honors", term)

    summary = term_honors_summary(_terms("honors"))
    m1, m2, m3, m4 = st.columns(4)
    with m1:
        st.metric("Current GPA", f"{summary['gpa_rounded']:.2f}")
    with m2:
        st.metric("Eligible for honors", summary["verdict_label"])
    with m3:
        st.metric("Total units", f"{summary['overall'].total_units:g}")
    with m4:
        st.metric("R grades", summary["overall"].repeat_count)

    save_and_restore("honors", HONORS_TERMS)

# ------------------------
# Latin honors calculator
# ------------------------
with latin_tab:
    st.subheader("Latin Honors Calculator")
    st.write("Calculate your 4-year academic performance for Latin honors.")

    # Filled in once every editor below has reported its rows
    results = st.container()
    headings = {}
    for year_terms in LATIN_TERM_LAYOUT:
        year = year_of(year_terms[0])
        headings[year] = st.empty()
        cols = st.columns(len(year_terms))
        for col, term in zip(cols, year_terms):
            with col:
                term_editor("latin", term)

    latin = latin_honors_summary(_terms("latin"))
    for year, heading in headings.items():
        stats = latin["year_stats"][year]
        heading.markdown(f"#### {year} · GPA {stats.gpa:.2f} · {stats.total_units:g} units")
    with results:
        m1, m2 = st.columns(2)
        with m1:
            st.metric("Overall GPA", f"{latin['gpa_rounded']:.2f}")
        with m2:
            st.metric("Latin Honor", latin["latin_honor_label"])

    save_and_restore("latin", [t for year in LATIN_TERM_LAYOUT for t in year])

# ------------------------
# Grade converter
# ------------------------
with converter_tab:
    st.subheader("Grade Converter")
    st.write("Convert between APC (4.0), UP (1.0) and percentage grades.")

    with st.form("converter_form"):
        source = st.radio("Convert from", ["APC grade", "UP grade", "Percentage"], horizontal=True)
        raw = st.text_input("Grade", placeholder="e.g. 3.75, R, A.W., 1.25, 92")
        submitted = st.form_submit_button("Convert", type="primary")

    if submitted and raw.strip():
        try:
            if source == "APC grade":
                result = convert_from_scale_a(raw)
            elif source == "UP grade":
                result = convert_from_scale_b(raw)
            else:
                result = convert_from_percentage(raw)
        except ConversionError as e:
            st.error(str(e))
        else:
            if result is None:
                st.warning("No grade bracket covers that percentage.")
            else:
                c1, c2, c3, c4 = st.columns(4)
                apc = result.scale_a if isinstance(result.scale_a, str) else f"{result.scale_a:.2f}"
                with c1:
                    st.metric("APC", apc)
                with c2:
                    st.metric("UP", f"{result.scale_b:.2f}")
                with c3:
                    st.metric("Percentage", format_percentage(result))
                with c4:
                    st.metric("Remark", result.remark)
                if result.honors_label:
                    st.success(f"🏅 {result.honors_label}")

# ------------------------
# Feedback
# ------------------------
with feedback_tab:
    st.subheader("Send feedback")
    with st.form("feedback_form", clear_on_submit=True):
        feedback_type = st.selectbox("Feedback type", ["bug", "feature", "general"])
        subject = st.text_input("Subject", max_chars=100)
        message = st.text_area("Message")
        contact = st.text_input("Contact (optional)")
        consent = st.checkbox("I agree to be contacted about this feedback")
        sent = st.form_submit_button("Submit")

    if sent:
        req = FeedbackRequest(
            feedback_type=feedback_type,
            subject=subject,
            message=message,
            contact_info=contact or None,
            consent=consent,
            user_context={
                "browser": "streamlit",
                "currentUrl": "feedback",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
        try:
            response = submit_feedback(req)
        except FeedbackError as e:
            st.error(str(e))
        else:
            st.success(f"✅ {response['message']} (issue #{response['issueNumber']})")

# ------------------------
# FAQ
# ------------------------
with faq_tab:
    st.header("FAQ")

    st.subheader("How is my GPA calculated?")
    st.write(
        "Each subject's grade is multiplied by its units to get honor points. A term's GPA is its "
        "total honor points divided by its total units. For honors, the GPA shown is the average "
        "of the term GPAs; for Latin honors it is the average of the four year GPAs."
    )

    st.subheader("Who is eligible for honors?")
    st.write(
        "At least 36 units, no more than 2 R grades, and a GPA between 3.00 and 4.00."
    )

    st.subheader("What are the Latin honors cut-offs?")
    st.write(
        "At least 144 units and no more than 8 R grades over four years. "
        "Summa Cum Laude from 3.85, Magna Cum Laude from 3.70, Cum Laude from 3.50."
    )

    st.subheader("Are NATSER subjects counted?")
    st.write("No. Subjects whose code starts with NATSER are left out of every calculation.")

    st.subheader("What data do you collect or store?")
    st.write(
        "Grades stay in your browser session. Use the download buttons to keep a copy; "
        "nothing is written to a database."
    )
