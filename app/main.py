"""
Streamlit Frontend for the Bank Ledger

The screens a user works with day to day: accounts, moving money,
history, and backups. Everything goes through the LedgerService;
this module only renders and collects input.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Nothing is shown until the screen lock is opened
3. Clear error messages in simple language
4. Visual feedback for all operations

The ledger runs on one long-lived event loop in a background thread,
so the interest cycle keeps ticking between Streamlit reruns.
"""

import asyncio
import threading
from collections import deque
from datetime import datetime

import streamlit as st

from bankledger.config import get_settings, validate_all_settings
from bankledger.models import AccountType, InterestApplied, TransactionType
from bankledger.orchestrator import LedgerApp, create_app_components
from bankledger.services import LedgerError, LedgerImportError
from bankledger.services.ledger import MAX_NOTE_LENGTH
from bankledger.validation import BackupValidator


# Page configuration
st.set_page_config(
    page_title="Bank Ledger",
    page_icon="🏦",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


TYPE_LABELS = {
    TransactionType.DEPOSIT: "⬆️ Deposit",
    TransactionType.WITHDRAWAL: "⬇️ Withdrawal",
    TransactionType.TRANSFER_IN: "↘️ Transfer in",
    TransactionType.TRANSFER_OUT: "↗️ Transfer out",
}


class _Runtime:
    """Event loop thread, ledger components and recent interest events."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(
            target=self.loop.run_forever,
            name="ledger-loop",
            daemon=True,
        )
        self.thread.start()
        self.interest_events: deque[InterestApplied] = deque(maxlen=20)
        self.app: LedgerApp = self.submit(self._boot())

    async def _boot(self) -> LedgerApp:
        app = await create_app_components()
        app.ledger.on_interest_applied(self.interest_events.appendleft)
        await app.start()
        return app

    def submit(self, coro, timeout: float = 30.0):
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout=timeout)


@st.cache_resource
def get_runtime() -> _Runtime:
    """Get or create the ledger runtime (cached for the server's lifetime)."""
    return _Runtime()


def run_async(coro):
    """Run a ledger coroutine on the runtime loop and wait for it."""
    return get_runtime().submit(coro)


def format_money(amount, currency: str = "") -> str:
    return f"{amount:,.2f} {currency}".strip()


def main():
    """Main application entry point."""
    try:
        runtime = get_runtime()
    except Exception as e:
        st.error(f"Failed to initialize the ledger: {e}")
        st.stop()
    app = runtime.app

    if not app.screen_lock.is_unlocked:
        render_lock_screen(app)
        return

    # Sidebar navigation
    st.sidebar.title("🏦 Bank Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏦 Accounts", "💸 Move Money", "📜 History", "💾 Backup", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if runtime.interest_events:
        st.sidebar.markdown("**Recent interest**")
        for event in list(runtime.interest_events)[:5]:
            st.sidebar.caption(
                f"+{event.amount} on {event.timestamp:%d %b %H:%M}"
            )

    if st.sidebar.button("🔒 Lock"):
        run_async(app.screen_lock.lock())
        st.rerun()

    if page == "🏦 Accounts":
        render_accounts_page(app)
    elif page == "💸 Move Money":
        render_money_page(app)
    elif page == "📜 History":
        render_history_page(app)
    elif page == "💾 Backup":
        render_backup_page(app)
    elif page == "⚙️ Settings":
        render_settings_page(app)


def render_lock_screen(app: LedgerApp):
    """Ask for the passcode before showing anything."""
    st.title("🔒 Locked")
    code = st.text_input("Passcode", type="password", max_chars=12)
    if st.button("Unlock", type="primary"):
        if run_async(app.screen_lock.verify(code)):
            st.rerun()
        else:
            st.error("Wrong passcode")


def render_accounts_page(app: LedgerApp):
    """List accounts, create new ones, delete old ones."""
    st.title("🏦 Accounts")

    accounts = run_async(app.ledger.list_accounts())

    if not accounts:
        st.info("No accounts yet. Create your first one below.")
    for account in accounts:
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            st.markdown(f"**{account.name}**  \n{account.account_type.value.title()}")
        with col2:
            st.markdown(
                f'<div class="big-number">{format_money(account.balance, account.currency)}</div>',
                unsafe_allow_html=True,
            )
        with col3:
            if st.button("🗑️ Delete", key=f"delete-{account.id}"):
                run_async(app.ledger.delete_account(account.id))
                st.rerun()

    st.markdown("---")
    st.subheader("➕ New Account")
    with st.form("create-account"):
        name = st.text_input("Name *")
        account_type = st.selectbox(
            "Type *",
            options=list(AccountType),
            format_func=lambda x: x.value.title(),
        )
        currency = st.text_input("Currency *", value="SEK", max_chars=10)
        initial_balance = st.text_input("Opening balance", value="0")
        if st.form_submit_button("Create", type="primary"):
            try:
                account = run_async(app.ledger.create_account(
                    name, account_type, currency, initial_balance
                ))
                st.success(f"Created {account.name}")
                st.rerun()
            except LedgerError as e:
                st.error(str(e))


def render_money_page(app: LedgerApp):
    """Deposit, withdraw and transfer."""
    st.title("💸 Move Money")

    accounts = run_async(app.ledger.list_accounts())
    if not accounts:
        st.info("Create an account first.")
        return

    labels = {a.id: f"{a.name} ({format_money(a.balance, a.currency)})" for a in accounts}
    ids = list(labels)

    action = st.radio("Action", ["Deposit", "Withdraw", "Transfer"], horizontal=True)

    with st.form("move-money"):
        if action == "Transfer":
            from_id = st.selectbox("From", ids, format_func=labels.get)
            to_id = st.selectbox("To", ids, index=min(1, len(ids) - 1), format_func=labels.get)
        else:
            account_id = st.selectbox("Account", ids, format_func=labels.get)
        amount = st.text_input("Amount *", value="")
        note = st.text_input("Note (optional)", max_chars=MAX_NOTE_LENGTH)

        if st.form_submit_button(action, type="primary"):
            try:
                if action == "Deposit":
                    run_async(app.ledger.deposit(account_id, amount, note))
                elif action == "Withdraw":
                    run_async(app.ledger.withdraw(account_id, amount, note))
                else:
                    run_async(app.ledger.transfer(from_id, to_id, amount, note))
                st.markdown(
                    f'<div class="success-box"><h4>✅ {action} done</h4></div>',
                    unsafe_allow_html=True,
                )
            except LedgerError as e:
                st.markdown(
                    f'<div class="error-box"><h4>❌ {action} failed</h4><p>{e}</p></div>',
                    unsafe_allow_html=True,
                )


def render_history_page(app: LedgerApp):
    """Transaction history, newest first."""
    st.title("📜 History")

    accounts = run_async(app.ledger.list_accounts())
    names = {a.id: a.name for a in accounts}

    account_filter = st.selectbox(
        "Account",
        options=[None] + list(names),
        format_func=lambda x: "All accounts" if x is None else names[x],
    )
    transactions = run_async(app.ledger.list_transactions(account_filter))

    if not transactions:
        st.info("No transactions yet.")
        return

    st.dataframe(
        [
            {
                "Date": tx.date.astimezone().strftime("%Y-%m-%d %H:%M"),
                "Account": names.get(tx.account_id, str(tx.account_id)),
                "Type": TYPE_LABELS[tx.transaction_type],
                "Amount": f"{tx.amount:,.2f}",
                "Balance": f"{tx.balance_after:,.2f}",
                "Counterparty": names.get(tx.to_account_id, "") if tx.to_account_id else "",
                "Note": tx.note or "",
            }
            for tx in transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_backup_page(app: LedgerApp):
    """Export to and import from a JSON backup."""
    st.title("💾 Backup")

    st.subheader("Export")
    if st.button("Prepare backup"):
        st.session_state.backup_document = run_async(app.ledger.export_ledger())
    if st.session_state.get("backup_document"):
        st.download_button(
            "⬇️ Download backup",
            data=st.session_state.backup_document,
            file_name=f"ledger-backup-{datetime.now():%Y%m%d-%H%M}.json",
            mime="application/json",
        )

    st.markdown("---")
    st.subheader("Import")
    uploaded = st.file_uploader("Backup file", type=["json"])
    replace_existing = st.checkbox(
        "Replace the current ledger",
        value=True,
        help="Unchecked merges the backup into the current ledger",
    )

    if uploaded and st.button("⬆️ Import", type="primary"):
        document = uploaded.read().decode("utf-8", errors="replace")
        try:
            result = run_async(app.ledger.import_ledger(document, replace_existing))
            st.success(BackupValidator().get_user_friendly_summary(result))
            for warning in result.warnings:
                st.warning(warning)
        except LedgerImportError as e:
            st.markdown(
                '<div class="error-box"><h4>❌ Import refused</h4>'
                + "".join(f"<p>{problem}</p>" for problem in e.problems)
                + "</div>",
                unsafe_allow_html=True,
            )


def render_settings_page(app: LedgerApp):
    """Configuration status and interest controls."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for key in ("storage", "google_sheets", "interest", "screen_lock", "app"):
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {key.replace('_', ' ').title()}")
        else:
            st.error(f"❌ {key.replace('_', ' ').title()} - {status.get(f'{key}_error')}")

    st.markdown("### Interest")
    interest = get_settings().interest
    st.markdown(
        f"Savings accounts earn **{interest.annual_rate_percent}%** a year, "
        f"credited every {interest.interval_seconds:g} seconds."
    )
    scheduler = app.scheduler
    st.caption(
        f"Running: {scheduler.is_running} · cycles: {scheduler.completed_cycles} "
        f"· failed: {scheduler.failed_cycles}"
    )
    if st.button("Apply interest now"):
        events = run_async(scheduler.run_cycle())
        st.success(f"Interest credited to {len(events)} accounts")


if __name__ == "__main__":
    main()
