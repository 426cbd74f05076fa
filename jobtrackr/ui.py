import streamlit as st
import pandas as pd
import matplotlib.pyplot as plt
from datetime import date

from jobtrackr.auth import logout_button, reset_ui_if_owner_changed
from jobtrackr.charts import status_chart, timeline_chart
from jobtrackr.errors import JobTrackrError
from jobtrackr.service import (
    STATUSES, DEFAULT_STATUS, empty_form, form_from_record, job_posting_site,
    normalize_job_url, parse_date,
)
from jobtrackr.views import (
    compute_stats, export_csv, filter_applications, status_distribution, weekly_timeline,
)

PAGES = ["Dashboard", "Applications", "Add / Edit", "Export"]
LIST_COLUMNS = ["company_name", "job_title", "status", "location", "salary_range", "applied_date"]
COLUMN_LABELS = {
    "company_name": "Company",
    "job_title": "Job",
    "status": "Status",
    "location": "Location",
    "salary_range": "Salary",
    "applied_date": "Applied",
}


def safe_str(x):
    return "" if x is None else str(x)


def status_style(status: str):
    s = (status or "").strip().lower()
    if s == "offer":
        return ("#d1fae5", "#065f46")
    if s == "rejected":
        return ("#fee2e2", "#991b1b")
    if s in ("interview scheduled", "interviewed"):
        return ("#fef3c7", "#92400e")
    if s == "applied":
        return ("#e5e7eb", "#374151")
    return ("#f3f4f6", "#111827")


def status_badge(status: str) -> str:
    bg, fg = status_style(status)
    return (
        f'<span style="padding:2px 10px;border-radius:999px;background:{bg};color:{fg};'
        f'font-weight:700;font-size:12px;white-space:nowrap;">{safe_str(status)}</span>'
    )


def show_chart(fig, empty_msg: str):
    if fig is None:
        st.info(empty_msg)
        return
    st.pyplot(fig)
    plt.close(fig)


def posting_link(url) -> str:
    site = job_posting_site(url)
    if site is None:
        return "No URL"
    return f"[{site[1]}]({normalize_job_url(url)})"


def application_form(key: str, initial: dict, submit_label: str):
    """Renders the shared create/edit form and returns the payload on submit."""
    with st.form(key, clear_on_submit=(key == "add_form")):
        company_name = st.text_input("Company Name *", value=initial["company_name"], key=f"{key}_company")
        job_title = st.text_input("Job Title *", value=initial["job_title"], key=f"{key}_title")

        current = initial.get("status") or DEFAULT_STATUS
        status = st.selectbox("Status", STATUSES, index=STATUSES.index(current) if current in STATUSES else 0, key=f"{key}_status")

        job_url = st.text_input("Job URL *", value=initial["job_url"], key=f"{key}_url")
        salary_range = st.text_input("Salary Range", value=initial["salary_range"], key=f"{key}_salary")
        location = st.text_input("Location *", value=initial["location"], key=f"{key}_location")

        applied = parse_date(initial.get("applied_date")) or date.today()
        applied_date = st.date_input("Applied Date *", value=applied, key=f"{key}_applied")

        notes = st.text_area("Notes", height=120, value=initial["notes"], key=f"{key}_notes")

        if st.form_submit_button(submit_label):
            return {
                "company_name": company_name,
                "job_title": job_title,
                "status": status,
                "job_url": job_url,
                "salary_range": salary_range,
                "location": location,
                "applied_date": applied_date,
                "notes": notes,
            }
    return None


def delete_confirmation(gate):
    target = st.session_state.get("delete_target")
    if not target:
        return

    st.warning(
        f"You are about to permanently delete **{safe_str(target.get('job_title'))}** "
        f"at {safe_str(target.get('company_name'))}. This action cannot be undone."
    )
    a, b, _ = st.columns([1, 1, 6])
    if a.button("Cancel", key="del_cancel"):
        del st.session_state["delete_target"]
        st.rerun()
    if b.button("Delete", key="del_confirm", type="primary"):
        try:
            gate.delete(target["id"])
        except JobTrackrError as e:
            st.error(str(e))
        else:
            del st.session_state["delete_target"]
            if st.session_state.get("edit_id") == target["id"]:
                st.session_state.pop("edit_id", None)
            st.rerun()


def render_app(gate):
    reset_ui_if_owner_changed(gate)
    st.title("JobTrackr")
    st.caption("Track and manage your job applications")

    # ---- Navigation request handler ----
    if "_nav_to" in st.session_state:
        st.session_state["page"] = st.session_state["_nav_to"]
        del st.session_state["_nav_to"]

    if "page" not in st.session_state:
        st.session_state["page"] = "Dashboard"

    # Sidebar
    with st.sidebar:
        st.subheader("Filters")
        search = st.text_input("Search by company or job title", key="search")
        status = st.selectbox("Status", ["All"] + STATUSES, index=0, key="status_filter")

        st.divider()
        if gate.session:
            st.caption(f"Signed in as {gate.session.email}")
        logout_button(gate)

    try:
        records = gate.records()
    except JobTrackrError as e:
        st.error(str(e))
        records = gate.store.records

    filtered = filter_applications(records, search, status)
    stats = compute_stats(records)

    # Top metrics
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Applications", stats["total"])
    c2.metric("Interviews Secured", stats["interviews_secured"])
    c3.metric("Pending Responses", stats["pending_responses"])
    c4.metric("Success Rate", f"{stats['success_rate']}%")

    st.divider()

    page = st.radio("", PAGES, horizontal=True, key="page")

    # ---------------- Dashboard ----------------
    if page == "Dashboard":
        left, right = st.columns([1, 1])
        with left:
            st.subheader("Applications Over Time")
            show_chart(timeline_chart(weekly_timeline(records)), "No applications yet.")
        with right:
            st.subheader("Status Distribution")
            show_chart(status_chart(status_distribution(records)), "No applications yet.")

        st.divider()
        st.subheader("Your stats")
        if not records:
            st.info("Add some applications to see your stats.")
        else:
            st.table(pd.DataFrame([{
                "Total": stats["total"],
                "Interviews": stats["interviews_secured"],
                "Pending": stats["pending_responses"],
                "Success Rate": f"{stats['success_rate']}%",
            }]))

    # ---------------- Applications ----------------
    elif page == "Applications":
        st.subheader("Applications")
        delete_confirmation(gate)

        if not filtered:
            st.info("No matching applications. Try adjusting or clearing your filters.")
        else:
            widths = [2] * len(LIST_COLUMNS) + [2, 1, 1]
            header_cols = st.columns(widths)
            for i, col in enumerate(LIST_COLUMNS):
                header_cols[i].markdown(f"**{COLUMN_LABELS[col]}**")
            header_cols[-3].markdown("**Job Posting**")
            st.divider()

            for r in filtered:
                app_id = r["id"]
                row_cols = st.columns(widths)
                for i, col in enumerate(LIST_COLUMNS):
                    if col == "status":
                        row_cols[i].markdown(status_badge(r.get("status")), unsafe_allow_html=True)
                    else:
                        val = safe_str(r.get(col)).strip()
                        row_cols[i].write(val or "—")
                row_cols[-3].markdown(posting_link(r.get("job_url")))

                if row_cols[-2].button("Edit", key=f"row_edit_{app_id}"):
                    st.session_state["edit_id"] = app_id
                    st.session_state.pop("edit_select", None)
                    st.session_state["_nav_to"] = "Add / Edit"
                    st.rerun()
                if row_cols[-1].button("Delete", key=f"row_del_{app_id}"):
                    st.session_state["delete_target"] = r
                    st.rerun()

                if r.get("notes"):
                    st.caption(safe_str(r.get("notes")))

    # ---------------- Add / Edit ----------------
    elif page == "Add / Edit":
        left, right = st.columns([1, 1])

        with left:
            st.markdown("### Add new")
            payload = application_form("add_form", empty_form(), "Add Application")
            if payload is not None:
                try:
                    created = gate.create(payload)
                except JobTrackrError as e:
                    st.error(str(e))
                else:
                    st.session_state["edit_id"] = created.get("id")
                    st.session_state.pop("edit_select", None)
                    st.success("Added.")
                    st.rerun()

        with right:
            st.markdown("### Edit existing")
            if not records:
                st.info("Nothing to edit yet.")
            else:
                by_id = {r["id"]: r for r in records}
                app_ids = list(by_id)
                pref = st.session_state.get("edit_id", app_ids[0])
                if pref not in by_id:
                    pref = app_ids[0]

                selected_id = st.selectbox(
                    "Select application",
                    app_ids,
                    index=app_ids.index(pref),
                    format_func=lambda i: f"{safe_str(by_id[i].get('company_name'))} · {safe_str(by_id[i].get('job_title'))}",
                    key="edit_select",
                )
                payload = application_form(f"edit_form_{selected_id}", form_from_record(by_id[selected_id]), "Save Application")
                if payload is not None:
                    try:
                        gate.update(selected_id, payload)
                    except JobTrackrError as e:
                        st.error(str(e))
                    else:
                        st.success("Updated.")
                        st.rerun()

    # ---------------- Export ----------------
    elif page == "Export":
        st.subheader("Export")
        if not filtered:
            st.info("No data to export.")
        else:
            st.download_button(
                "Download CSV",
                export_csv(filtered),
                file_name="jobtrackr_applications.csv",
                mime="text/csv",
            )
