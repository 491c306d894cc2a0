# stock_dashboard/Home.py
import streamlit as st

from utils.auth import is_authenticated, login, logout
from utils.config_loader import APP_CONFIG
from utils.session_state import init_state, get_current_month

st.set_page_config(
    page_title="Stock Health Dashboard",
    page_icon="🏠",
    layout="wide"
)

init_state()

if not is_authenticated():
    st.title("🔐 Stock Health Dashboard")
    st.markdown("Log in to view inventory health, upload stock reports and plan orders.")

    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        if login(username, password, APP_CONFIG):
            st.rerun()
        else:
            st.error("Invalid username or password.")
    st.stop()

col1, col2 = st.columns([3, 1])
with col1:
    st.title("Welcome to the Stock Health Dashboard 📈")
with col2:
    if st.button("🚪 Log out"):
        logout()
        st.rerun()

st.caption(f"Reporting month: {get_current_month()}")

if "error" in APP_CONFIG:
    st.error(f"Configuration Error: {APP_CONFIG['error']}")

st.markdown("---")

st.header("What this does")
st.write("""
Upload the weekly stock export (or pick it from Google Drive) and the dashboard turns every row into a product record,
works out each SKU's reorder threshold, folds packs and bundles into base-unit equivalents, and flags low-stock and
overstock items. The order planner then turns the result into a prioritised purchase list.
""")

st.info("👈 **Select a page from the sidebar** to begin.")

st.header("Available Modules")
st.markdown("""
- **📊 Inventory Dashboard:** KPIs, stock-health charts, low-stock and overstock lists, and a searchable product table.
- **📤 Data Upload:** Upload an Excel/CSV export, load it from Google Drive, save it to the backend, or add items by hand.
- **🛒 Order Planner:** Prioritised order suggestions with pack/bundle roll-ups, CSV export and email via Gmail.
""")
