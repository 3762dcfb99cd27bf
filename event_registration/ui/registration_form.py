"""Registration form UI component."""
from typing import Dict, List

import streamlit as st

from event_registration.models.registration import RegistrationRequest
from event_registration.services.event_service import get_event_options
from event_registration.services.registration_service import (
    FIELD_COLLEGE,
    FIELD_DEPARTMENT,
    FIELD_EMAIL,
    FIELD_EVENT,
    FIELD_FORM,
    FIELD_FULL_NAME,
    RegistrationResult,
    RegistrationWorkflow,
)

NO_EVENTS_MESSAGE = "No events are currently open for registration."

FIELD_LABELS = {
    FIELD_EVENT: "Event",
    FIELD_FULL_NAME: "Full Name",
    FIELD_EMAIL: "Email",
    FIELD_COLLEGE: "College",
    FIELD_DEPARTMENT: "Department",
}


def format_errors(errors: Dict[str, str]) -> List[str]:
    """Turn field errors into display lines, form-level error first."""
    lines = []
    if FIELD_FORM in errors:
        lines.append(errors[FIELD_FORM])
    for field_name, label in FIELD_LABELS.items():
        if field_name in errors:
            lines.append(f"{label}: {errors[field_name]}")
    return lines


def _show_result(result: RegistrationResult) -> None:
    if result.success:
        st.success(f"✅ {result.message}")
        st.balloons()
        return

    for line in format_errors(result.errors) or [result.message]:
        st.error(f"❌ {line}")


def render_registration_form(workflow: RegistrationWorkflow) -> None:
    """Render the event registration form and handle its submission."""
    st.markdown("## 🎫 Event Registration")

    options, error_msg = get_event_options(workflow.events, int(workflow.clock()))
    if error_msg:
        st.error(error_msg)
        return

    if not options:
        st.info(NO_EVENTS_MESSAGE)
        return

    labels = dict(options)

    with st.form("event_registration_form"):
        event_id = st.selectbox(
            "Event",
            options=list(labels.keys()),
            format_func=lambda value: labels[value],
        )
        full_name = st.text_input("Full Name", max_chars=255)
        email = st.text_input("Email", max_chars=254)
        college = st.text_input("College", max_chars=255)
        department = st.text_input("Department", max_chars=255)
        submitted = st.form_submit_button("Register", type="primary", use_container_width=True)

    if submitted:
        request = RegistrationRequest(
            event_id=event_id,
            full_name=full_name,
            email=email,
            college=college,
            department=department,
        )
        _show_result(workflow.register(request))
