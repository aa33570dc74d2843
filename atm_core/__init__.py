"""
ATM Transaction Core

In-memory ATM transaction processing: account ledger, physical cash vault,
customer/technician directory and the ATM availability state machine,
composed behind a single transaction facade. All amounts use Decimal.
"""

__version__ = "1.0.0"
