# frontend/streamlit_app.py
import datetime

import pandas as pd
import requests
import streamlit as st

API_BASE = st.secrets.get("api_base", "http://localhost:8000")

SEVERITY_BADGE = {"LOW": "🟢", "MEDIUM": "🟡", "HIGH": "🟠", "CRITICAL": "🔴"}

st.set_page_config(page_title="Prescription Management", layout="wide")
st.title("Prescription Management — Clinician Dashboard")

# Sidebar patient selection
with st.sidebar:
    st.header("Patient")
    patient_id = st.text_input("Patient ID (UUID)", value=st.session_state.get("patient_id", ""))
    st.session_state["patient_id"] = patient_id.strip()
    if st.button("Load Prescriptions"):
        if not patient_id.strip():
            st.warning("Enter a patient ID first.")
        else:
            try:
                r = requests.get(f"{API_BASE}/patients/{patient_id.strip()}/prescriptions", timeout=30)
                if r.status_code == 200:
                    st.session_state["prescriptions"] = r.json()
                    st.success(f"Loaded {len(r.json())} prescription(s).")
                else:
                    st.error("Lookup failed: " + r.text)
            except Exception as e:
                st.error("Could not contact backend: " + str(e))

col1, col2 = st.columns([1, 1.2])

with col1:
    st.subheader("New Prescription")
    with st.form("new_prescription"):
        medication_name = st.text_input("Medication")
        dosage = st.number_input("Dosage", min_value=0.0, value=500.0)
        unit = st.selectbox("Unit", ["mg", "g", "ml", "tablets", "capsules"])
        frequency_hours = st.number_input("Every N hours", min_value=1, max_value=24, value=8)
        start_time = st.text_input("First dose time (HH:MM)", value="08:00")
        start_date = st.date_input("Start date", value=datetime.date.today())
        end_date = st.date_input("End date", value=datetime.date.today() + datetime.timedelta(days=7))
        prescribed_by = st.text_input("Prescribed by")
        submitted = st.form_submit_button("Create")

    if submitted:
        payload = {
            "medication_name": medication_name,
            "dosage": float(dosage),
            "unit": unit,
            "frequency_hours": int(frequency_hours),
            "start_time": start_time,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "prescribed_by": prescribed_by,
        }
        try:
            r = requests.post(
                f"{API_BASE}/patients/{st.session_state['patient_id']}/prescriptions",
                json=payload, timeout=30,
            )
            if r.status_code != 201:
                st.error("Create failed: " + r.text)
            else:
                out = r.json()
                st.session_state["last_alerts"] = out.get("clinical_alerts") or []
                st.success(f"Created prescription {out['prescription']['prescription_id']}.")
        except Exception as e:
            st.error("Failed to call backend: " + str(e))

    st.markdown("**Clinical Alerts (last create)**")
    alerts = st.session_state.get("last_alerts")
    if alerts:
        for a in alerts:
            badge = SEVERITY_BADGE.get(a.get("severity"), "")
            st.markdown(f"- {badge} **{a.get('severity')}** {a.get('message')}")
            st.caption(a.get("recommendation"))
    elif alerts is not None:
        st.success("✅ No clinical alerts.")

with col2:
    st.subheader("Prescriptions")
    prescriptions = st.session_state.get("prescriptions", [])
    if prescriptions:
        df = pd.DataFrame(prescriptions)
        st.dataframe(df[[
            "prescription_id", "medication_name", "dosage", "unit",
            "frequency_hours", "start_date", "end_date", "status",
        ]])
        selected = st.selectbox("Prescription", [p["prescription_id"] for p in prescriptions])

        if st.button("Show Schedule"):
            r = requests.get(f"{API_BASE}/prescriptions/{selected}/schedule", timeout=30)
            if r.status_code == 200:
                st.session_state["schedule"] = r.json()
            else:
                st.error("Schedule lookup failed: " + r.text)

        if st.button("Delete Prescription"):
            r = requests.delete(f"{API_BASE}/prescriptions/{selected}", timeout=30)
            if r.status_code == 200:
                st.success("Prescription deleted.")
                st.session_state["schedule"] = []
            else:
                st.error("Delete failed: " + r.text)
    else:
        st.write("No prescriptions loaded. Use the sidebar to load a patient.")

    st.markdown("---")
    st.subheader("Dosing Schedule")
    entries = st.session_state.get("schedule", [])
    if entries:
        st.dataframe(pd.DataFrame(entries)[["scheduled_date", "scheduled_time", "dosage", "unit", "status"]])
        labels = [f"{e['scheduled_date']} {e['scheduled_time']}" for e in entries]
        choice = st.selectbox("Dose", range(len(entries)), format_func=lambda i: labels[i])
        new_status = st.radio("Mark as", ["TAKEN", "MISSED", "PENDING"], horizontal=True)
        if st.button("Update Dose"):
            e = entries[choice]
            r = requests.put(
                f"{API_BASE}/prescriptions/{e['prescription_id']}/schedule/"
                f"{e['scheduled_date']}/{e['scheduled_time']}",
                json={"status": new_status}, timeout=30,
            )
            if r.status_code == 200:
                entries[choice] = r.json()
                st.session_state["schedule"] = entries
                st.rerun()
            else:
                st.error("Update failed: " + r.text)
    else:
        st.write("No schedule loaded.")
