"""
Streamlit Frontend for the Family Budget Dashboard

This is the screen the family looks at: monthly KPIs, where the money
went, and forms to add expenses, income and T-WAKE sales.

DESIGN PRINCIPLES:
1. The database is the source of truth; the sheet is only a mirror
2. Every save says whether the Google Sheet was updated
3. Clear error messages, never a silent failure
4. Nothing is computed here - the page only displays what the
   orchestrator and dashboard query return
"""

import asyncio
from datetime import date
from decimal import Decimal

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from budget_dashboard.config import validate_all_settings
from budget_dashboard.models.ledger import (
    ExpenseCreate,
    IncomeCreate,
    ProductCreate,
    ProductSaleCreate,
)
from budget_dashboard.orchestrator import LedgerFlow, create_app_components
from budget_dashboard.queries import DashboardQuery
from budget_dashboard.services.sheets import SheetSyncError
from budget_dashboard.services.sheets.layout import category_choices
from budget_dashboard.services.storage import StorageError
from budget_dashboard.utils.periods import MONTH_LABELS


# Page configuration
st.set_page_config(
    page_title="Budget Familial",
    page_icon="💶",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components(use_storage=True)


def euros(amount: Decimal) -> str:
    return f"{amount:,.2f} €".replace(",", " ")


def main():
    """Main application entry point."""
    ledger_flow, dashboard_query, _ = get_components()

    st.sidebar.title("💶 Budget Familial")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "➖ Add Expense", "➕ Add Income", "🍪 T-WAKE", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page()
        return

    if dashboard_query is None:
        st.error("Supabase not configured. Set SUPABASE_DB_URL and restart the app.")
        render_settings_page()
        return

    if page == "📊 Dashboard":
        render_dashboard_page(dashboard_query)
    elif page == "➖ Add Expense":
        render_expense_page(ledger_flow)
    elif page == "➕ Add Income":
        render_income_page(ledger_flow)
    elif page == "🍪 T-WAKE":
        render_t_wake_page(ledger_flow, dashboard_query)


def render_dashboard_page(dashboard_query: DashboardQuery):
    """KPIs, category breakdown, yearly series and recent transactions."""
    st.title("📊 Dashboard")

    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year, step=1)
    with col2:
        month_index = st.selectbox(
            "Month",
            options=list(range(12)),
            index=today.month - 1,
            format_func=lambda i: MONTH_LABELS[i],
        )

    try:
        summary = run_async(dashboard_query.monthly_summary(int(year), month_index))
    except StorageError as e:
        st.error(f"Could not load the dashboard: {e}")
        return

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Dépenses du mois", euros(summary.total_expenses))
    k2.metric("Revenus du mois", euros(summary.total_income))
    k3.metric("Balance du mois", euros(summary.month_balance))
    k4.metric(
        "Solde fin de mois",
        euros(summary.closing_balance),
        delta=f"report {euros(summary.carryover)}",
        delta_color="off",
    )
    st.caption(
        f"{summary.expense_count} dépense(s), {summary.income_count} revenu(s) "
        f"du {summary.month_start:%d/%m/%Y} au {summary.month_end:%d/%m/%Y} (exclu)"
    )

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("Dépenses par catégorie")
        if summary.category_breakdown:
            categories = pd.DataFrame(
                [{"Catégorie": c.name, "Montant": float(c.value)} for c in summary.category_breakdown]
            )
            st.bar_chart(categories.set_index("Catégorie")["Montant"])
        else:
            st.info("No expenses this month.")

    with right:
        st.subheader(f"Année {summary.year}")
        series = pd.DataFrame(
            [
                {"Mois": p.name, "Dépenses": float(p.expenses), "Revenus": float(p.income)}
                for p in summary.time_series
            ]
        )
        # Keep calendar order instead of alphabetical
        series["Mois"] = pd.Categorical(series["Mois"], categories=MONTH_LABELS, ordered=True)
        st.line_chart(series.set_index("Mois"))

    st.subheader("Transactions récentes")
    if summary.recent_transactions:
        recent = pd.DataFrame(
            [
                {
                    "Date": t.date,
                    "Type": t.kind.value,
                    "Libellé": t.label,
                    "Montant": float(t.amount),
                    "Note": t.description or "",
                }
                for t in summary.recent_transactions
            ]
        )
        st.dataframe(recent, use_container_width=True, hide_index=True)
    else:
        st.info("No transactions yet.")


def render_expense_page(ledger_flow: LedgerFlow):
    """Add an expense; its category total is mirrored to the sheet."""
    st.title("➖ Add Expense")

    choices = category_choices()
    category = st.selectbox("Category", options=list(choices))
    subcategory = st.selectbox("Subcategory", options=choices[category])

    with st.form("expense_form", clear_on_submit=True):
        expense_date = st.date_input("Date", value=date.today())
        amount = st.number_input("Amount (€)", min_value=0.0, step=0.5, format="%.2f")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("💾 Save Expense", type="primary")

    if not submitted:
        return

    try:
        expense = ExpenseCreate(
            date=expense_date,
            amount=Decimal(str(amount)),
            category=category,
            subcategory=subcategory,
            description=description,
        )
    except ValidationError as e:
        st.error(f"Please check the form: {e.errors()[0]['msg']}")
        return

    try:
        result = run_async(ledger_flow.record_expense(expense))
    except StorageError as e:
        st.error(f"Expense not saved: {e}")
        return

    if result.sheet_synced:
        st.success(f"✅ {result.message} ({result.sync.cell} = {result.sync.total})")
    else:
        st.warning(f"⚠️ {result.message}")


def render_income_page(ledger_flow: LedgerFlow):
    """Add an income row."""
    st.title("➕ Add Income")

    with st.form("income_form", clear_on_submit=True):
        income_date = st.date_input("Date", value=date.today())
        amount = st.number_input("Amount (€)", min_value=0.0, step=10.0, format="%.2f")
        source = st.text_input("Source", placeholder="e.g. Salaire")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("💾 Save Income", type="primary")

    if not submitted:
        return

    try:
        income = IncomeCreate(
            date=income_date,
            amount=Decimal(str(amount)),
            source=source,
            description=description,
        )
        saved = run_async(ledger_flow.record_income(income))
    except ValidationError as e:
        st.error(f"Please check the form: {e.errors()[0]['msg']}")
        return
    except StorageError as e:
        st.error(f"Income not saved: {e}")
        return

    st.success(f"✅ Saved {euros(saved.amount)} from {saved.source}")


def render_t_wake_page(ledger_flow: LedgerFlow, dashboard_query: DashboardQuery):
    """Products, sales, stats and the products worksheet sync."""
    st.title("🍪 T-WAKE")

    try:
        stats = run_async(dashboard_query.product_stats())
        products = run_async(ledger_flow.list_products())
    except StorageError as e:
        st.error(f"Could not load T-WAKE data: {e}")
        return

    columns = st.columns(4)
    for column, (label, period) in zip(
        columns,
        [("Aujourd'hui", stats.today), ("Semaine", stats.week), ("Mois", stats.month), ("Année", stats.year)],
    ):
        column.metric(label, euros(period.revenue), delta=f"marge {euros(period.profit)}", delta_color="off")
        column.caption(f"{period.count} unité(s)")

    st.markdown("---")
    sale_tab, product_tab, sync_tab = st.tabs(["Ventes", "Produits", "Google Sheets"])

    with sale_tab:
        if not products:
            st.info("Add a product first.")
        else:
            by_name = {p.name: p for p in products}
            with st.form("sale_form", clear_on_submit=True):
                name = st.selectbox("Product", options=list(by_name))
                sale_date = st.date_input("Date", value=date.today())
                quantity = st.number_input("Quantity", min_value=1, step=1, value=1)
                note = st.text_input("Note (optional)")
                submitted = st.form_submit_button("💾 Save Sale", type="primary")
            if submitted:
                try:
                    sale = run_async(ledger_flow.record_sale(ProductSaleCreate(
                        product_id=by_name[name].id,
                        date=sale_date,
                        quantity=int(quantity),
                        description=note,
                    )))
                    st.success(f"✅ {sale.quantity} × {name} = {euros(sale.revenue)}")
                except StorageError as e:
                    st.error(f"Sale not saved: {e}")

        sales = run_async(ledger_flow.list_sales())
        if sales:
            st.dataframe(
                pd.DataFrame([
                    {
                        "Date": s.date,
                        "Produit": s.product.name if s.product else "?",
                        "Quantité": s.quantity,
                        "CA": float(s.revenue),
                        "Marge": float(s.margin),
                    }
                    for s in sales
                ]),
                use_container_width=True,
                hide_index=True,
            )

    with product_tab:
        with st.form("product_form", clear_on_submit=True):
            name = st.text_input("Name")
            price = st.number_input("Selling price (€)", min_value=0.0, step=0.5, format="%.2f")
            cost = st.number_input("Unit cost (€)", min_value=0.0, step=0.5, format="%.2f")
            submitted = st.form_submit_button("➕ Add Product")
        if submitted:
            try:
                product = run_async(ledger_flow.create_product(ProductCreate(
                    name=name,
                    selling_price=Decimal(str(price)),
                    unit_cost=Decimal(str(cost)),
                )))
                st.success(f"✅ Added {product.name}")
            except ValidationError as e:
                st.error(f"Please check the form: {e.errors()[0]['msg']}")
            except StorageError as e:
                st.error(f"Product not saved: {e}")

        if products:
            st.dataframe(
                pd.DataFrame([
                    {
                        "Produit": p.name,
                        "Prix": float(p.selling_price),
                        "Coût": float(p.unit_cost),
                        "Marge unitaire": float(p.unit_margin),
                    }
                    for p in products
                ]),
                use_container_width=True,
                hide_index=True,
            )

    with sync_tab:
        if not ledger_flow.sheets_configured:
            st.warning("Google Sheets not configured.")
        else:
            if st.button("🔄 Sync sales to the products sheet"):
                result = run_async(ledger_flow.sync_products())
                if result.success:
                    st.success(f"✅ Updated {result.updated_rows} row(s) for {result.year}")
                    if result.unmatched_products:
                        st.info("Not in the sheet: " + ", ".join(result.unmatched_products))
                else:
                    st.error(f"Sync failed: {result.error}")

            if st.button("🔎 Products in the sheet but not here"):
                try:
                    suggestions = run_async(ledger_flow.product_suggestions())
                except (SheetSyncError, StorageError) as e:
                    st.error(f"Could not read the sheet: {e}")
                else:
                    if suggestions:
                        st.dataframe(
                            pd.DataFrame([s.model_dump() for s in suggestions]),
                            use_container_width=True,
                            hide_index=True,
                        )
                    else:
                        st.success("Every product in the sheet is already here.")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Ledger)", "database"),
        ("Google Sheets (Mirror)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your credentials. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
