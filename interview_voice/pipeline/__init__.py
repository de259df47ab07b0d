"""Turn pipeline modules for the interview voice engine.

Each module encapsulates one discrete piece of a turn, keeping the
controller's event handlers free of transcript and counter bookkeeping.
"""
