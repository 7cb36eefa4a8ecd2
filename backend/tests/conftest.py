import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

BROKERAGE_HEADER = (
    '"Activity Date","Process Date","Settle Date","Instrument","Description",'
    '"Trans Code","Quantity","Price","Amount"'
)
CHECKING_HEADER = "Details,Posting Date,Description,Amount,Type,Balance,Check or Slip #"
CREDIT_HEADER = "Transaction Date,Post Date,Description,Category,Type,Amount,Memo"


def brokerage_row(
    activity_date: str,
    code: str,
    amount: str = "",
    *,
    instrument: str = "",
    description: str = "",
    quantity: str = "",
    price: str = "",
) -> str:
    cells = [activity_date, activity_date, activity_date, instrument, description, code, quantity, price, amount]
    return ",".join(f'"{value}"' for value in cells)


def brokerage_csv(*rows: str) -> str:
    return "\n".join((BROKERAGE_HEADER,) + rows) + "\n"

