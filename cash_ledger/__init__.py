"""Cash ledger: cash accounts, incomes, outcomes and reconciliation."""
