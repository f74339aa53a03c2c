"""Account ledger: accounts, transactions and the rules that keep their balances consistent."""
