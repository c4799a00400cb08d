"""Finance tracker: income, expenses and recurring transaction series."""
