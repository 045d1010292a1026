"""FSM states for the bot."""

from aiogram.fsm.state import State, StatesGroup


class StatementImport(StatesGroup):
    """States for the bank statement upload."""

    waiting_for_file = State()
