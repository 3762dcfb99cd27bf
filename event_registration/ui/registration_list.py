"""Registration list UI component with CSV export."""
from datetime import datetime

import streamlit as st

from event_registration.services.export_service import (
    EMPTY_MESSAGE,
    export_filename,
    load_registrations,
    to_csv,
    to_table,
)
from event_registration.services.registration_service import RegistrationStore


def render_registration_list(store: RegistrationStore) -> None:
    """Render all registrations as a table with an 'Export to CSV' action."""
    st.markdown("## 📋 Event Registrations")

    rows, error_msg = load_registrations(store)
    if error_msg:
        st.error(error_msg)
        return

    if rows:
        st.caption(f"{len(rows)} registrations")
        st.dataframe(to_table(rows), use_container_width=True, hide_index=True)
    else:
        st.info(EMPTY_MESSAGE)

    st.download_button(
        "⬇️ Export to CSV",
        data=to_csv(rows),
        file_name=export_filename(datetime.now()),
        mime="text/csv",
        type="primary",
    )
