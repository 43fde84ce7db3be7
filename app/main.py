"""
Streamlit Frontend for Expense Tracker Pro

DESIGN PRINCIPLES:
1. Nothing behind the license gate renders until the device is licensed
2. Clear error messages in simple language
3. Every number shown is computed locally; AI only adds commentary

Flow:
- Start-up: check the license once per session
- Unlicensed: show the license screen and nothing else
- Licensed: dashboard, expenses, budgets, goals, AI chat and settings
"""

from datetime import date
from decimal import Decimal

import streamlit as st

from expense_tracker.models.expense import (
    Category,
    ExpenseDraft,
    GoalDraft,
    TimeView,
    all_currencies,
)
from expense_tracker.orchestrator import (
    CHAT_GREETING,
    AppComponents,
    ExpenseFlow,
    LicenseFlow,
    create_app_components,
)
from expense_tracker.services.insights import InsightGenerationError


# Page configuration
st.set_page_config(
    page_title="Expense Tracker Pro",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .license-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    components = get_components()

    if "licensed" not in st.session_state:
        status = components.license_flow.check_license()
        st.session_state.licensed = status.licensed

    if not st.session_state.licensed:
        render_license_page(components.license_flow)
        return

    # Set by the license screen before its rerun
    if "flash" in st.session_state:
        st.success(st.session_state.pop("flash"))

    expense_flow = components.expense_flow

    st.sidebar.title("💸 Expense Tracker Pro")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🧾 Expenses", "🎯 Budgets & Goals", "💬 AI Chat", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(expense_flow)
    elif page == "🧾 Expenses":
        render_expenses_page(expense_flow)
    elif page == "🎯 Budgets & Goals":
        render_budgets_page(expense_flow)
    elif page == "💬 AI Chat":
        render_chat_page(expense_flow)
    elif page == "⚙️ Settings":
        render_settings_page(expense_flow)


def render_license_page(license_flow: LicenseFlow):
    """The only screen an unlicensed device can see."""
    st.title("🔑 Activate Expense Tracker Pro")
    st.markdown(f"""
    <div class="license-box">
        <p>Enter the license key you received with your purchase.
        Each key can be used on up to {license_flow.manager.device_limit} devices.</p>
    </div>
    """, unsafe_allow_html=True)

    with st.form("license_form"):
        license_key = st.text_input(
            "License key",
            placeholder="ETP-XXXX-XXXX-XXXX",
        )
        submitted = st.form_submit_button("Activate", type="primary")

    if submitted:
        result, message = license_flow.submit_license_key(license_key)
        if result is not None and result.success:
            st.session_state.licensed = True
            st.session_state.flash = message
            st.rerun()
        else:
            st.error(message)


def render_dashboard_page(expense_flow: ExpenseFlow):
    """Totals for the selected period, budget bars and AI insights."""
    st.title("📊 Dashboard")
    currency = expense_flow.get_currency()

    time_view = st.radio(
        "Period",
        options=list(TimeView),
        index=list(TimeView).index(TimeView.MONTHLY),
        format_func=lambda v: v.value,
        horizontal=True,
    )

    summary = expense_flow.dashboard_summary(time_view)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total spent", currency.format(summary.total))
    col2.metric("Transactions", summary.transaction_count)
    col3.metric("Average", currency.format(summary.average))

    if summary.by_category:
        st.markdown("### By category")
        st.bar_chart({
            category.value: float(amount)
            for category, amount in summary.by_category.items()
        })

    progress = expense_flow.monthly_budget_progress()
    if progress:
        st.markdown("### Monthly budgets")
        for item in progress:
            label = (
                f"{item.category.value}: {currency.format(item.spent)} "
                f"of {currency.format(item.budget)}"
            )
            if item.is_over_budget:
                label += " ⚠️ over budget"
            st.progress(item.bar_percentage / 100, text=label)

    st.markdown("### Spending trend")
    trend = expense_flow.spending_trend()
    if any(month.total > 0 for month in trend):
        st.line_chart({month.label: float(month.total) for month in trend})
    else:
        st.info(
            "Not enough data for spending trends. "
            "Keep adding expenses to see your trends over time!"
        )

    st.markdown("---")
    if st.button("✨ Get AI Insights", type="primary"):
        with st.spinner("Analyzing your spending..."):
            st.markdown(expense_flow.get_insights(time_view))


def render_expenses_page(expense_flow: ExpenseFlow):
    """Add, edit and delete expenses."""
    st.title("🧾 Expenses")
    currency = expense_flow.get_currency()

    with st.form("add_expense", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            title = st.text_input("Title *")
            amount = st.number_input(
                f"Amount ({currency.symbol}) *",
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )
        with col2:
            category = st.selectbox(
                "Category",
                options=list(Category),
                format_func=lambda c: c.value,
            )
            expense_date = st.date_input("Date", value=date.today())

        if st.form_submit_button("➕ Add Expense", type="primary"):
            if not title.strip():
                st.error("Please enter a title")
            elif amount <= 0:
                st.error("Please enter a valid amount")
            else:
                expense_flow.add_expense(ExpenseDraft(
                    title=title,
                    amount=Decimal(str(amount)).quantize(Decimal("0.01")),
                    category=category,
                    date=expense_date,
                ))
                st.success("Expense added")

    st.markdown("---")

    expenses = expense_flow.list_expenses()
    if not expenses:
        st.info("No expenses yet. Add your first one above.")
        return

    for expense in expenses:
        with st.expander(
            f"{expense.date.strftime('%d %b %Y')} · {expense.title} · "
            f"{currency.format(expense.amount)} · {expense.category.value}"
        ):
            with st.form(f"edit_{expense.id}"):
                new_title = st.text_input("Title", value=expense.title)
                new_amount = st.number_input(
                    "Amount",
                    value=float(expense.amount),
                    min_value=0.01,
                    step=0.01,
                    format="%.2f",
                )
                new_category = st.selectbox(
                    "Category",
                    options=list(Category),
                    index=list(Category).index(expense.category),
                    format_func=lambda c: c.value,
                )
                new_date = st.date_input("Date", value=expense.date)
                if st.form_submit_button("💾 Save changes"):
                    expense_flow.update_expense(expense.id, ExpenseDraft(
                        title=new_title,
                        amount=Decimal(str(new_amount)).quantize(Decimal("0.01")),
                        category=new_category,
                        date=new_date,
                    ))
                    st.rerun()

            if st.button("🗑️ Delete", key=f"delete_{expense.id}"):
                expense_flow.delete_expense(expense.id)
                st.rerun()


def render_budgets_page(expense_flow: ExpenseFlow):
    """Monthly budgets per category and savings goals."""
    st.title("🎯 Budgets & Goals")
    currency = expense_flow.get_currency()

    st.markdown("### Monthly budgets")
    current = {b.category: b.amount for b in expense_flow.list_budgets()}
    with st.form("budgets"):
        amounts = {}
        for category in Category:
            amounts[category] = st.number_input(
                f"{category.value} ({currency.symbol})",
                value=float(current.get(category, Decimal("0"))),
                min_value=0.0,
                step=1.0,
                format="%.2f",
            )
        if st.form_submit_button("💾 Save budgets", type="primary"):
            for category, amount in amounts.items():
                expense_flow.update_budget(category, Decimal(str(amount)).quantize(Decimal("0.01")))
            st.success("Budgets saved")

    st.markdown("---")
    st.markdown("### Savings goals")

    with st.form("add_goal", clear_on_submit=True):
        goal_title = st.text_input("Goal *", placeholder="e.g., New laptop")
        target = st.number_input(
            f"Target amount ({currency.symbol}) *",
            min_value=0.0,
            step=1.0,
            format="%.2f",
        )
        with_plan = st.checkbox("Ask AI for a savings plan")

        if st.form_submit_button("➕ Add Goal"):
            if not goal_title.strip() or target <= 0:
                st.error("Please enter a goal and a target amount")
            else:
                draft = GoalDraft(
                    title=goal_title,
                    target_amount=Decimal(str(target)).quantize(Decimal("0.01")),
                )
                if with_plan:
                    with st.spinner("Drafting a plan..."):
                        try:
                            draft.ai_plan = expense_flow.propose_goal_plan(draft)
                        except InsightGenerationError:
                            st.warning("Could not generate a plan right now. The goal was saved without one.")
                expense_flow.add_goal(draft)
                st.success("Goal added")

    for goal in expense_flow.list_goals():
        with st.expander(f"{goal.title} · {currency.format(goal.target_amount)}"):
            if goal.ai_plan:
                st.markdown(goal.ai_plan)
            if st.button("🗑️ Delete goal", key=f"delete_goal_{goal.id}"):
                expense_flow.delete_goal(goal.id)
                st.rerun()


def render_chat_page(expense_flow: ExpenseFlow):
    """Questions about the selected period, answered by the AI assistant."""
    st.title("💬 AI Chat")

    time_view = st.radio(
        "Period",
        options=list(TimeView),
        index=list(TimeView).index(TimeView.MONTHLY),
        format_func=lambda v: v.value,
        horizontal=True,
        key="chat_period",
    )

    if "chat_history" not in st.session_state:
        st.session_state.chat_history = [("assistant", CHAT_GREETING)]

    for role, text in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(text)

    question = st.chat_input("Ask about your spending...")
    if question and question.strip():
        st.session_state.chat_history.append(("user", question))
        with st.chat_message("user"):
            st.markdown(question)

        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                answer = expense_flow.ask_assistant(question, time_view)
            st.markdown(answer)
        st.session_state.chat_history.append(("assistant", answer))


def render_settings_page(expense_flow: ExpenseFlow):
    """Currency preference and service status."""
    st.title("⚙️ Settings")

    currencies = all_currencies()
    current = expense_flow.get_currency()
    choice = st.selectbox(
        "Currency",
        options=currencies,
        index=[c.code for c in currencies].index(current.code),
        format_func=lambda c: f"{c.name} ({c.symbol})",
    )
    if choice.code != current.code:
        expense_flow.set_currency(choice.code)
        st.success(f"Currency set to {choice.name}")

    st.markdown("---")
    st.markdown("### Connection Status")

    from expense_tracker.config import validate_all_settings

    status = validate_all_settings()
    if status.get("gemini", False):
        st.success("✅ Gemini (AI insights) - Configured")
    else:
        error = status.get("gemini_error", "Not configured")
        st.warning(f"⚠️ Gemini (AI insights) - {error}")

    st.markdown(
        "To enable AI features, add `GEMINI_API_KEY` to your `.env` file. "
        "See `.env.example` for all variables."
    )


if __name__ == "__main__":
    main()
