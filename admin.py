import asyncio
import calendar
from datetime import date

import pandas as pd
import streamlit as st

from condo.core.config import settings
from condo.core.errors import CondoError
from condo.core.dates import local_today
from condo.models.db_models import Occupancy
from condo.services.audit_service import AuditService
from condo.services.auth_service import MappingSessionStorage, SessionProvider, SupabaseAuthGateway
from condo.services.booking_service import BookingService
from condo.services.db_service import SupabaseRecordStore

OCCUPANCY_ICONS = {Occupancy.FREE: "🟢", Occupancy.PARTIAL: "🟡", Occupancy.FULL: "🔴"}

# Page Config
st.set_page_config(
    page_title="Condo Admin",
    page_icon="🏢",
    layout="wide"
)

# Header
st.title(f"{settings.PROJECT_NAME} - Painel")


def run(action):
    """Runs `action(store, provider)` on a fresh event loop; each rerun gets its own clients."""
    async def main():
        store = SupabaseRecordStore(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY)
        gateway = SupabaseAuthGateway(store)
        # st.session_state belongs to one browser session, so visitors never share a login
        provider = SessionProvider(gateway, MappingSessionStorage(st.session_state))
        try:
            await provider.restore()
            return await action(store, provider)
        finally:
            await gateway.close()
            await store.close()
    return asyncio.run(main())


async def current_session(store, provider):
    return provider.session


async def load_bookings(store, provider, first: date, last: date):
    bookings = BookingService(store, AuditService(store))
    config = await bookings.condominium.get_amenity_config()
    month = await bookings.month_calendar(first.year, first.month)
    rows = await bookings.list_bookings(start=first, end=last)
    return config, month, rows


session = run(current_session)

if session is None:
    with st.form("login"):
        email = st.text_input("E-mail")
        password = st.text_input("Senha", type="password")
        if st.form_submit_button("Entrar"):
            async def login(store, provider):
                return await provider.login(email, password)
            try:
                run(login)
                st.rerun()
            except CondoError as e:
                st.error(e.message)
    st.stop()

col_user, col_logout = st.columns([4, 1])
col_user.caption(f"Conectado como {session.email} ({session.role.value})")
if col_logout.button("Sair"):
    async def logout(store, provider):
        await provider.logout()
    run(logout)
    st.rerun()

# Month picker
today = local_today()
col1, col2 = st.columns(2)
year = col1.number_input("Ano", min_value=2000, max_value=2100, value=today.year)
month = col2.selectbox("Mês", list(range(1, 13)), index=today.month - 1)
first_day = date(int(year), month, 1)
last_day = date(int(year), month, calendar.monthrange(int(year), month)[1])

try:
    config, occupancy, bookings = run(lambda store, provider: load_bookings(store, provider, first_day, last_day))
except CondoError as e:
    st.error(f"Erro ao carregar agendamentos: {e.message}")
    st.stop()

# Metrics
counts = pd.Series([o.value for o in occupancy.days.values()]).value_counts()
m1, m2, m3 = st.columns(3)
m1.metric("Dias livres", int(counts.get(Occupancy.FREE.value, 0)))
m2.metric("Parcialmente ocupados", int(counts.get(Occupancy.PARTIAL.value, 0)))
m3.metric("Lotados", int(counts.get(Occupancy.FULL.value, 0)))

# Occupancy grid, one row per week
st.subheader(f"Ocupação - {config.name}")
weeks = calendar.Calendar(firstweekday=6).monthdatescalendar(int(year), month)
grid = pd.DataFrame(
    [[f"{d.day} {OCCUPANCY_ICONS[occupancy.days[d]]}" if d.month == month else "" for d in week] for week in weeks],
    columns=["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"],
)
st.dataframe(grid, use_container_width=True, hide_index=True)

# Data Table
st.subheader("Agendamentos do mês")
if bookings:
    df = pd.DataFrame([{
        "booking_date": b.booking_date,
        "period": b.period.value,
        "party_room_id": b.party_room_id,
        "unit": b.unit.label if b.unit else b.unit_id,
    } for b in bookings])
    st.dataframe(
        df,
        use_container_width=True,
        column_config={
            "booking_date": st.column_config.DateColumn("Data", format="DD/MM/YYYY"),
            "period": "Período",
            "party_room_id": "Salão",
            "unit": "Unidade",
        }
    )
else:
    st.info("Nenhum agendamento neste mês.")

# Footer
st.markdown("---")
st.caption(f"{settings.PROJECT_NAME} • {settings.ENVIRONMENT}")
