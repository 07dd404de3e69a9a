"""Monthly calendar reconciliation and meal moves for weekly plans."""
