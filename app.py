"""
Event registration application
Register for open events and review registrations.
"""
import logging

import streamlit as st

from event_registration.services.registration_service import RegistrationWorkflow, create_workflow
from event_registration.services.storage_service import open_database
from event_registration.ui.registration_form import render_registration_form
from event_registration.ui.registration_list import render_registration_list
from event_registration.utils.config import Settings, load_settings

logger = logging.getLogger(__name__)


# Streamlit page configuration
st.set_page_config(
    page_title="Event Registration",
    page_icon="🎫",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Initialize session state defaults."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "register"

    # Handle URL query parameters for direct page links
    if "url_params_processed" not in st.session_state:
        query_params = st.query_params
        if query_params.get("page") in {"register", "registrations"}:
            st.session_state.current_page = query_params["page"]
        st.session_state.url_params_processed = True


def apply_custom_css():
    """Apply custom CSS styles."""
    st.markdown("""
        <style>
        /* Hide default Streamlit chrome */
        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}

        .stButton > button, .stDownloadButton > button {
            border-radius: 12px;
            font-weight: 600;
        }

        .stTextInput > div > div > input {
            border-radius: 8px;
        }
        </style>
    """, unsafe_allow_html=True)


def render_navigation():
    """Render navigation buttons."""
    nav_col1, nav_col2 = st.columns(2, gap="small")

    with nav_col1:
        if st.button("🎫 Register", use_container_width=True, key="nav_register"):
            st.session_state.current_page = "register"

    with nav_col2:
        if st.button("📋 Registrations", use_container_width=True, key="nav_registrations"):
            st.session_state.current_page = "registrations"


def render_current_page(workflow: RegistrationWorkflow):
    """Render the page selected in session state."""
    try:
        if st.session_state.current_page == "register":
            render_registration_form(workflow)

        elif st.session_state.current_page == "registrations":
            render_registration_list(workflow.registrations)

        else:
            st.error(f"Unknown page: {st.session_state.current_page}")
            if st.button("Back to registration"):
                st.session_state.current_page = "register"
                st.rerun()

    except Exception:
        # Error boundary
        logger.exception("Unhandled exception while rendering page")
        st.error("Something went wrong. Please try again later.")


def configure_logging(settings: Settings):
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=getattr(logging, settings.log_level, logging.INFO),
    )


def main():
    """Application entry point."""
    try:
        settings = load_settings()
        configure_logging(settings)

        initialize_session_state()
        apply_custom_css()
        render_navigation()

        # One connection per script run
        with open_database(settings.db_path) as db:
            render_current_page(create_workflow(db, settings))
    except Exception:
        logger.exception("Unhandled exception during app execution")
        st.error("The application hit an error. Please reload the page.")

        if st.button("🔄 Reload"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
