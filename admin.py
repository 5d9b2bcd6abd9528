import streamlit as st
import pandas as pd
import requests

from app.core.config import settings

# Page Config
st.set_page_config(
    page_title="Bookings Dashboard",
    page_icon="🚗",
    layout="wide"
)

API_URL = f"{settings.DASHBOARD_API_URL.rstrip('/')}{settings.API_V1_STR}/bookings"

def load_snapshot(refresh: bool = False):
    try:
        if refresh:
            response = requests.post(f"{API_URL}/refresh", timeout=30)
        else:
            response = requests.get(API_URL, timeout=30)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        st.error(f"Failed to fetch bookings data: {e}")
        return None

def to_frame(rows, snapshot) -> pd.DataFrame:
    full = snapshot["variant"] == "full"
    records = []
    for row in rows:
        vehicle = row["vehicle"]
        service = row["service"]
        billing = row["billing"]
        record = {
            "Customer": f"{row['customer_name']}\n{row['customer_email']}",
            "Contact": row["contact"],
            "Vehicle": "\n".join(p for p in (vehicle["registration"], vehicle["make_model"], vehicle.get("type_category")) if p),
            "Service": "\n".join(p for p in (
                service["name"],
                f"Service: {service['price']}",
                f"Addons: {service['addons']}" if service["addons"] else None,
            ) if p),
            "Date & Time": f"{row['date']} {row['time']}",
        }
        if full:
            record["Payment Status"] = row["payment_status"]
            record["Billing"] = (
                f"Total: {billing['total']}\n"
                f"Deposit (20%): {billing['deposit']}\n"
                f"Remaining (80%): {billing['remaining']}"
            )
        else:
            record["Price"] = billing["total"]
        record["Created"] = row["created"]
        records.append(record)
    return pd.DataFrame(records)

def render_tab(rows, snapshot, empty_message: str):
    if not rows:
        st.info(empty_message)
        return
    st.dataframe(to_frame(rows, snapshot), use_container_width=True, hide_index=True)

# Header
st.title("Bookings Dashboard")

refresh = st.button("Refresh")
snapshot = load_snapshot(refresh=refresh)

if snapshot is None:
    st.stop()

if snapshot["loading"]:
    st.write("Loading bookings...")
    st.stop()

for notice in snapshot["notices"][-1:]:
    st.error(f"{notice['title']}: {notice['description']}")

st.caption(f"Real-time view of all bookings ({snapshot['total']} total)")

upcoming_tab, past_tab = st.tabs([
    f"Upcoming Bookings ({snapshot['upcoming_count']})",
    f"Past Bookings ({snapshot['past_count']})",
])

with upcoming_tab:
    render_tab(snapshot["upcoming"], snapshot, "No upcoming bookings found")

with past_tab:
    render_tab(snapshot["past"], snapshot, "No past bookings found")
