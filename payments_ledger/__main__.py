"""Allow ``python -m payments_ledger``."""

from .cli import main

main()
