"""Deterministic response templating."""

from __future__ import annotations

from src.intent.schema import BankAccount

DEFAULT_CURRENCY_SYMBOL = "₹"

ERROR_REPLY = "Sorry, I encountered an error. Please try again!"

DEFAULT_REPLY = (
    "I can add expenses (e.g., 'Add 50 Food'), show totals ('Show total'), "
    "or show category totals ('Show Food')."
)

FEATURES_REPLY = """I can help you with:

💰 **Expense Tracking**: Say "Spent 50 Canteen" to add expenses
📊 **Analytics**: Ask for "category breakdown" or "monthly summary"
🎯 **Budget Management**: Check your "budget status" or "set budget limits"
📱 **Navigation**: Say "go to dashboard", "transaction history", or "open settings"
📈 **Insights**: Ask for "weekly spending" or "top categories"

What would you like to explore?"""

COMMANDS_REPLY = """I can help you with:

📝 **Adding Expenses**: "I spent 30 Auto", "Add 50 Canteen"
💵 **Adding Income**: "Add income 500 Other", "Received 200 Books"
🏦 **Banks**: "Add bank SBI 5000", "Switch bank SBI", "Current bank"
📊 **View Analytics**: "Open analytics", "Category breakdown"
💳 **Check Transactions**: "My transactions", "Transaction history"
🎯 **Budget Tracking**: "Budget status", "Set budget limits"
📈 **Spending Insights**: "Weekly summary", "Monthly summary"

What would you like to do?"""

GREETING_REPLY = (
    "Hello! I'm your expense tracking assistant. I can help you manage your finances, add "
    "expenses, analyze spending patterns, and navigate the app. Try saying 'Spent 50 Canteen' "
    "or 'budget status'!"
)

ABOUT_REPLY = (
    "This expense tracker is designed for university students! I understand common student "
    "expenses like canteen food, auto rides, books, mess charges, and more. I can help you manage "
    "your monthly allowance and track spending patterns typical for university life."
)

THEME_REPLY = (
    "You can toggle between light and dark themes! Click the sun/moon icon in the header, or go "
    "to Settings to change your appearance preferences."
)

NAVIGATION_REPLIES: dict[str, str] = {
    "dashboard": (
        "I've taken you to the dashboard! Here you can see your spending overview, recent "
        "transactions, and budget progress."
    ),
    "transactions": (
        "Here are all your transactions! You can filter by expense/income, search for specific "
        "transactions, and see them organized by date."
    ),
    "analytics": (
        "Let's look at your spending analytics! Here you can see category breakdowns, monthly "
        "trends, and detailed insights about your spending patterns."
    ),
    "budget": (
        "I've opened the budget manager for you! Here you can create new budgets, track your "
        "spending limits, and get alerts when you're approaching your limits."
    ),
    "settings": (
        "I've opened your settings! Here you can update your profile, manage notifications, "
        "toggle dark mode, and handle data export/import."
    ),
}

POSITIVE_AMOUNT_REPLY = "Please provide a valid positive amount."
POSITIVE_AMOUNT_EXAMPLE_REPLY = (
    "Please provide a valid positive amount. Example: Add 50 Food or Add income 500 Other"
)


def format_currency(value: float, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format `value` with two fixed decimals behind the currency symbol (`₹12.50`)."""

    if value == 0:
        # Avoid rendering negative zero as "-0.00".
        value = 0.0
    return f"{symbol}{value:.2f}"


def bank_suffix(bank: BankAccount | None, preposition: str = "in") -> str:
    """Return `" in <bank>"` for the current bank, or an empty string."""

    if bank is None:
        return ""
    return f" {preposition} {bank.name}"


def unknown_category_reply(raw_category: str, available: str) -> str:
    return f'Unknown category "{raw_category}". Available: {available}'


def which_category_reply(available: str) -> str:
    return f"Which category is this for? Available: {available}"


def invalid_balance_reply(token: str) -> str:
    return f'"{token}" is not a valid opening balance. Example: Add bank SBI 5000'
